"""
Seed the sales database with a week of demo records.

    python -m sales_api.seed

Clears the four record collections, makes sure a seed admin exists and
inserts records stamped by that admin.
"""
import logging
import os
from datetime import timedelta

from sales_api.auth import hash_password
from sales_api.config import Settings
from sales_api.crud import RESOURCES
from sales_api.database import ADMINS, connect, database_for, ensure_indexes, utcnow

logger = logging.getLogger(__name__)

GENERAL_SALES = [
    ("Ahmed Ali", "10:30", 0, 150),
    ("Fatima Hassan", "14:45", 0, 275),
    ("Omar Farah", "09:15", 1, 90),
    ("Hawa Ahmed", "16:20", 1, 450),
    ("Abdi Warsame", "11:00", 2, 320),
    ("Sahra Mohamed", "13:30", 3, 180),
    ("Yusuf Jama", "15:10", 4, 60),
]

DAILY_BREAKDOWN = [
    ("Subax", "08:00", 0, 520),
    ("Galab", "14:00", 0, 610),
    ("Subax", "08:00", 1, 480),
    ("Galab", "14:00", 1, 700),
    ("Subax", "08:00", 2, 395),
]

CUSTOMER_CREDIT = [
    ("Maryan Nur", "12:00", 0, 75),
    ("Cali Xasan", "17:45", 1, 120),
    ("Deeqa Said", "10:20", 3, 40),
    ("Ismail Aden", "09:40", 5, 210),
]

OUT_OF_STOCK = [
    ("Bur cad", "bur", "08:30", 0),
    ("Sokor", "sokor", "09:00", 1),
    ("Shampoo Sunsilk", "shampoo", "11:15", 2),
    ("Saliid", "other", "16:00", 4),
]


def ensure_seed_admin(db, settings: Settings) -> dict:
    username = os.getenv("SEED_ADMIN_USERNAME", "admin")
    admin = db[ADMINS].find_one({"username": username})
    if admin:
        return admin
    admin = {
        "username": username,
        "email": os.getenv("SEED_ADMIN_EMAIL", f"{username}@example.com"),
        "password": hash_password(os.getenv("SEED_ADMIN_PASSWORD", "admin123"), settings.bcrypt_rounds),
        "fullName": os.getenv("SEED_ADMIN_NAME", "Seed Admin"),
        "role": "superadmin",
        "isActive": True,
        "lastLogin": None,
        "createdAt": utcnow(),
    }
    admin["_id"] = db[ADMINS].insert_one(admin).inserted_id
    logger.info("Created seed admin %s", username)
    return admin


def build_documents(admin_id):
    today = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    now = utcnow()

    def stamp(doc, days_ago):
        doc.update(
            date=today - timedelta(days=days_ago),
            description=None,
            createdBy=admin_id,
            updatedBy=admin_id,
            createdAt=now,
            updatedAt=now,
        )
        return doc

    return {
        "generalSales": [stamp({"magaca": n, "time": t, "lacagta": float(a)}, d) for n, t, d, a in GENERAL_SALES],
        "dailyBreakdown": [stamp({"magaca": n, "time": t, "lacagta": float(a)}, d) for n, t, d, a in DAILY_BREAKDOWN],
        "customerCredit": [
            stamp({"magaca": n, "time": t, "lacagta_uhartay": float(a)}, d) for n, t, d, a in CUSTOMER_CREDIT
        ],
        "outOfStock": [
            stamp({"magaca": n, "nooca": k, "time": t, "qaangaadh": "Dhamaaday"}, d) for n, k, t, d in OUT_OF_STOCK
        ],
    }


def seed(db, settings: Settings) -> dict:
    admin = ensure_seed_admin(db, settings)
    documents = build_documents(admin["_id"])
    counts = {}
    for resource in RESOURCES:
        collection = db[resource.collection]
        collection.delete_many({})
        docs = documents[resource.kind]
        if docs:
            collection.insert_many(docs)
        counts[resource.kind] = len(docs)
    return counts


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    settings = Settings.from_env()
    client = connect(settings)
    try:
        db = database_for(client, settings)
        ensure_indexes(db)
        counts = seed(db, settings)
        for kind, count in counts.items():
            logger.info("Seeded %d %s records", count, kind)
    finally:
        client.close()


if __name__ == "__main__":
    main()
