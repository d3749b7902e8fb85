# Overview: reports.* procedures; sales listing and aggregate stats in currency units.

from ..services import reporting_service
from ..validation import Field, Shape
from portaria.time_utils import cents_to_units
from .registry import QUERY, procedure


@procedure(
    "reports.sales",
    QUERY,
    input=Shape({
        "startDate": Field("datetime"),
        "endDate": Field("datetime"),
    }),
)
def sales(ctx, data):
    rows = reporting_service.sales_report(data["startDate"], data["endDate"])
    for row in rows:
        row["price"] = cents_to_units(row["price"])
    return rows


@procedure(
    "reports.stats",
    QUERY,
    input=Shape({
        "startDate": Field("datetime", required=False),
        "endDate": Field("datetime", required=False),
    }, optional=True),
)
def stats(ctx, data):
    result = reporting_service.sales_stats(data.get("startDate"), data.get("endDate"))
    result["totalRevenue"] = cents_to_units(result["totalRevenue"])
    for bucket in result["paymentMethods"].values():
        bucket["total"] = cents_to_units(bucket["total"])
    return result
