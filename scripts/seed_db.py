"""
Seed script for demo reports around Bole, Addis Ababa.

Usage:
  - Dry run (default): python scripts/seed_db.py
  - Write to Firestore: python scripts/seed_db.py --apply
  - Load reports from a JSON file instead of the built-in set:
        python scripts/seed_db.py --file reports.json --apply

Timestamps in the built-in set are relative to "now" so the demo always has
fresh, recent and stale reports. JSON files use the stored document shape
(flat latitude/longitude, created_at as ISO string).
"""

import argparse
import json
from datetime import timedelta
from typing import Dict, List

from radar.models.report import Report
from radar.services.report_repository import (
    FirestoreReportRepository,
    report_from_document,
    report_to_document,
)
from radar.utils.timestamps import utc_now


def demo_documents() -> Dict[str, dict]:
    now = utc_now()

    def hours_ago(hours: float) -> str:
        return (now - timedelta(hours=hours)).isoformat()

    return {
        "demo-1": {
            "title": "Road Construction Delay", "category": "safety", "status": "pending",
            "latitude": 8.9898, "longitude": 38.7967, "address": "Bole Medhanialem, Addis Ababa",
            "created_at": hours_ago(2), "user_id": "user123", "confirmations": 5,
        },
        "demo-2": {
            "title": "Fuel Shortage at Total", "category": "fuel", "status": "confirmed",
            "latitude": 8.9778, "longitude": 38.7991, "address": "Bole Airport Road, Addis Ababa",
            "created_at": hours_ago(4), "user_id": "user456", "anonymous": True, "confirmations": 12,
            "metadata": {"availability": False, "queue_length": "long"},
        },
        "demo-3": {
            "title": "Price Surge at Local Market", "category": "price", "status": "pending",
            "latitude": 8.9845, "longitude": 38.7925, "address": "Bole Rwanda Market, Addis Ababa",
            "created_at": hours_ago(8), "user_id": "user789", "confirmations": 3,
            "metadata": {"price_details": {
                "item_name": "Teff", "unit_of_measure": "kg", "quantity": 1, "price": 120,
                "previous_price": 105,
            }},
        },
        "demo-4": {
            "title": "Waste Collection Issue", "category": "environment", "status": "confirmed",
            "latitude": 8.9912, "longitude": 38.7899, "address": "Bole Brass Area, Addis Ababa",
            "created_at": hours_ago(24), "user_id": "user123", "confirmations": 8,
        },
        "demo-5": {
            "title": "Traffic Signal Malfunction", "category": "safety", "status": "pending",
            "latitude": 8.9867, "longitude": 38.7945, "address": "Bole Atlas, Addis Ababa",
            "created_at": hours_ago(1), "user_id": "user456", "anonymous": True, "confirmations": 4,
        },
        "demo-6": {
            "title": "Water Supply Interruption", "category": "water", "status": "pending",
            "latitude": 8.9823, "longitude": 38.8012, "address": "Bole Bulbula, Addis Ababa",
            "created_at": hours_ago(12), "user_id": "user789", "confirmations": 6,
            "metadata": {"duration": "ongoing"},
        },
        "demo-7": {
            "title": "New Fuel Prices", "category": "price", "status": "confirmed",
            "latitude": 8.9934, "longitude": 38.7978, "address": "Bole NOC Station, Addis Ababa",
            "created_at": hours_ago(6), "user_id": "user123", "anonymous": True, "confirmations": 15,
            "metadata": {"price_details": {
                "item_name": "Benzene", "unit_of_measure": "liter", "quantity": 1, "price": 48,
            }},
        },
    }


def load_documents(path: str) -> Dict[str, dict]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def build_reports(documents: Dict[str, dict]) -> List[Report]:
    reports = []
    for doc_id, data in documents.items():
        report = report_from_document(doc_id, data)
        if report is None:
            print(f"Skipping invalid document: {doc_id}")
            continue
        reports.append(report)
    return reports


def write_reports(reports: List[Report], apply: bool = False) -> None:
    repository = FirestoreReportRepository() if apply else None
    for report in reports:
        print(f"Preparing: {repository.collection if repository else 'reports'}/{report.id} ({report.category.value})")
        if repository is None:
            continue
        try:
            repository.db.collection(repository.collection).document(report.id).set(report_to_document(report))
            print(f"Wrote: {report.id}")
        except Exception as e:
            print(f"Failed to write {report.id}: {e}")


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write to Firestore instead of dry-run")
    parser.add_argument("--file", help="JSON file of report documents keyed by id")
    args = parser.parse_args()

    documents = load_documents(args.file) if args.file else demo_documents()
    reports = build_reports(documents)
    write_reports(reports, apply=args.apply)

    if args.apply:
        print("Seeding completed.")
    else:
        print("Dry run complete. Re-run with --apply to write to Firestore.")


if __name__ == "__main__":
    main()
