"""
Seed the tourism database: an admin account and the starter destinations.

    python -m tourism_api.seed

Public registration always creates ``user`` accounts, so this is how the
first admin gets in.
"""
import logging
import os

from tourism_api.auth import hash_password
from tourism_api.config import Settings
from tourism_api.database import DESTINATIONS, USERS, connect, database_for, ensure_indexes, utcnow

logger = logging.getLogger(__name__)

DESTINATIONS_SEED = [
    {
        "name": "Laas Geel",
        "region": "Woqooyi Galbeed",
        "description": "Neolithic cave paintings among the best preserved in Africa.",
        "highlights": ["Rock art", "Guided cave tours"],
        "bestTime": "November - February",
        "climate": "Semi-arid",
        "rating": 4.8,
        "price": 120,
        "activities": ["Hiking", "Photography"],
    },
    {
        "name": "Lido Beach",
        "region": "Banaadir",
        "description": "Mogadishu's favourite beach with seafood restaurants along the shore.",
        "highlights": ["Sunset", "Seafood"],
        "bestTime": "December - March",
        "climate": "Tropical",
        "rating": 4.5,
        "price": 40,
        "activities": ["Swimming", "Dining"],
    },
    {
        "name": "Berbera",
        "region": "Saaxil",
        "description": "Historic port town with Ottoman-era architecture and coral reefs.",
        "highlights": ["Old town", "Snorkelling"],
        "bestTime": "October - April",
        "climate": "Hot and dry",
        "rating": 4.3,
        "price": 90,
        "activities": ["Diving", "Heritage walks"],
    },
]


def ensure_admin(db, settings: Settings) -> dict:
    email = os.getenv("SEED_ADMIN_EMAIL", "admin@example.com").lower()
    user = db[USERS].find_one({"email": email})
    if user:
        if user.get("role") != "admin":
            db[USERS].update_one({"_id": user["_id"]}, {"$set": {"role": "admin"}})
            logger.info("Promoted %s to admin", email)
        return user
    user = {
        "name": os.getenv("SEED_ADMIN_NAME", "Site Admin"),
        "email": email,
        "password": hash_password(os.getenv("SEED_ADMIN_PASSWORD", "admin123"), settings.bcrypt_rounds),
        "role": "admin",
        "walletBalance": 0,
        "isVerified": True,
        "isActive": True,
        "createdAt": utcnow(),
    }
    user["_id"] = db[USERS].insert_one(user).inserted_id
    logger.info("Created admin %s", email)
    return user


def seed(db, settings: Settings) -> int:
    ensure_admin(db, settings)
    added = 0
    for destination in DESTINATIONS_SEED:
        if db[DESTINATIONS].find_one({"name": destination["name"]}):
            continue
        db[DESTINATIONS].insert_one(dict(destination, createdAt=utcnow()))
        added += 1
    return added


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    settings = Settings.from_env()
    client = connect(settings)
    try:
        db = database_for(client, settings)
        ensure_indexes(db)
        logger.info("Added %d destinations", seed(db, settings))
    finally:
        client.close()


if __name__ == "__main__":
    main()
