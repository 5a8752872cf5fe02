"""
Sales API - Dashboard stats
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Optional

from pymongo.database import Database

from sales_api.crud import RESOURCES
from sales_api.database import utcnow

logger = logging.getLogger(__name__)

COLLECTIONS = {r.kind: r.collection for r in RESOURCES}


def day_bounds(day: datetime):
    start = day.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def _sum_credit(db: Database, start: datetime, end: datetime) -> float:
    pipeline = [
        {"$match": {"date": {"$gte": start, "$lt": end}}},
        {"$group": {"_id": None, "total": {"$sum": "$lacagta_uhartay"}}},
    ]
    res = list(db[COLLECTIONS["customerCredit"]].aggregate(pipeline))
    return res[0]["total"] if res else 0


def collect_stats(db: Database, today: Optional[datetime] = None) -> dict:
    """Run the dashboard count/sum queries concurrently; nothing is cached."""
    start, end = day_bounds(today or utcnow())
    today_range = {"date": {"$gte": start, "$lt": end}}

    queries = {
        "totalGeneralSales": lambda: db[COLLECTIONS["generalSales"]].count_documents({}),
        "totalDailyBreakdown": lambda: db[COLLECTIONS["dailyBreakdown"]].count_documents({}),
        "totalCustomerCredit": lambda: db[COLLECTIONS["customerCredit"]].count_documents({}),
        "totalOutOfStock": lambda: db[COLLECTIONS["outOfStock"]].count_documents({}),
        "todayGeneralSales": lambda: db[COLLECTIONS["generalSales"]].count_documents(today_range),
        "todayCustomerCreditTotal": lambda: _sum_credit(db, start, end),
    }
    with ThreadPoolExecutor(max_workers=len(queries)) as pool:
        futures = {name: pool.submit(query) for name, query in queries.items()}
        return {name: future.result() for name, future in futures.items()}
