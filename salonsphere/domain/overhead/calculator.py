"""
Overhead and pricing arithmetic

Pure functions; every division by a count, price or total that can be zero
resolves to 0 instead of raising.
"""

from typing import Optional

CALCULATION_METHODS = ("treatments", "revenue", "hours")


def safe_divide(numerator: float, denominator: Optional[float]) -> float:
    if not denominator:
        return 0.0
    return numerator / denominator


def calculate_overhead_per_treatment(overhead_monthly: float, total_treatments: int) -> float:
    """Monthly overhead spread evenly over the month's completed treatments"""
    return safe_divide(overhead_monthly, total_treatments)


def calculate_overhead_percentage(overhead_per_treatment: float, average_treatment_price: float) -> float:
    """Overhead per treatment as a percentage of the average treatment price"""
    return safe_divide(overhead_per_treatment, average_treatment_price) * 100


def calculate_margin(price: float, material_cost: float) -> float:
    """Gross margin percentage before overhead"""
    if price <= 0:
        return 0.0
    return ((price - material_cost) / price) * 100


def analyze_treatment_costs(price: float, material_cost: float, overhead_cost: float) -> dict:
    """
    Cost breakdown for one treatment.

    Margins may be negative when costs exceed the price; that is reported,
    not rejected.
    """
    total_cost = material_cost + overhead_cost
    return {
        "total_cost": total_cost,
        "margin_without_overhead": price - material_cost,
        "margin_with_overhead": price - total_cost,
        "overhead_percentage": safe_divide(overhead_cost, price) * 100,
    }


def allocate_overhead(
    method: str,
    *,
    overhead_monthly: float,
    overhead_per_treatment: float,
    price: float,
    duration_minutes: int,
    month_revenue: float,
    booked_minutes: int,
) -> float:
    """
    Overhead cost charged to one treatment.

    treatments: the same share for every treatment
    revenue:    proportional to the treatment price
    hours:      proportional to the treatment duration
    """
    if method == "revenue":
        return price * safe_divide(overhead_monthly, month_revenue)
    if method == "hours":
        return duration_minutes * safe_divide(overhead_monthly, booked_minutes)
    return overhead_per_treatment


def calculate_pricing(
    duration_minutes: int,
    material_cost: float,
    labor_cost_per_hour: float,
    overhead_percentage: float,
    desired_margin: float,
    competitor_price: float = 0,
) -> dict:
    """Suggested price for a treatment from its costs and a target margin"""
    if desired_margin >= 100:
        raise ValueError("Desired margin must be below 100%")

    labor_cost = (duration_minutes / 60) * labor_cost_per_hour
    overhead_cost = (labor_cost + material_cost) * (overhead_percentage / 100)
    total_cost = material_cost + labor_cost + overhead_cost
    suggested_price = total_cost / (1 - desired_margin / 100)
    actual_margin = safe_divide(suggested_price - total_cost, suggested_price) * 100

    competitor_margin = 0.0
    price_difference_percentage = 0.0
    price_difference = suggested_price - competitor_price
    if competitor_price > 0:
        competitor_margin = ((competitor_price - total_cost) / competitor_price) * 100
        price_difference_percentage = (price_difference / competitor_price) * 100

    return {
        "labor_cost": labor_cost,
        "overhead_cost": overhead_cost,
        "total_cost": total_cost,
        "suggested_price": suggested_price,
        "actual_margin": actual_margin,
        "profit_per_treatment": suggested_price - total_cost,
        "competitor_margin": competitor_margin,
        "price_difference": price_difference,
        "price_difference_percentage": price_difference_percentage,
    }


HIGH_OVERHEAD_PERCENTAGE = 30
HIGH_OVERHEAD_PER_TREATMENT = 15
LOW_TREATMENT_VOLUME = 50
HEALTHY_OVERHEAD_PERCENTAGE = 25
HEALTHY_OVERHEAD_PER_TREATMENT = 8


def build_overhead_alerts(metrics: dict) -> list[dict]:
    """Advisory messages for a month's overhead metrics, most severe first"""
    percentage = metrics["overhead_percentage"]
    per_treatment = metrics["overhead_per_treatment"]
    treatments = metrics["total_treatments"]
    alerts = []

    if percentage > HIGH_OVERHEAD_PERCENTAGE:
        alerts.append({
            "type": "warning",
            "title": "Hoge overhead kosten",
            "message": (
                f"Uw overhead kosten bedragen {percentage:.1f}% van de gemiddelde "
                "behandelprijs. Dit is hoger dan de aanbevolen 25-30%."
            ),
            "action": "Overweeg kostenbesparingen in huur, utilities of andere vaste kosten.",
        })

    if per_treatment > HIGH_OVERHEAD_PER_TREATMENT:
        alerts.append({
            "type": "error",
            "title": "Zeer hoge overhead per behandeling",
            "message": f"€{per_treatment:.2f} overhead per behandeling is extreem hoog.",
            "action": "Verhoog het aantal behandelingen of verlaag de maandelijkse vaste kosten.",
        })

    if treatments < LOW_TREATMENT_VOLUME:
        alerts.append({
            "type": "info",
            "title": "Laag behandelvolume",
            "message": (
                f"Slechts {treatments} behandelingen deze maand. Meer behandelingen "
                "verlagen de overhead per behandeling."
            ),
            "action": "Focus op marketing en klantenwerving om het volume te verhogen.",
        })

    if percentage <= HEALTHY_OVERHEAD_PERCENTAGE and per_treatment <= HEALTHY_OVERHEAD_PER_TREATMENT:
        alerts.append({
            "type": "success",
            "title": "Uitstekende overhead ratio",
            "message": f"Uw overhead van {percentage:.1f}% ligt binnen het optimale bereik.",
            "action": "Behoud deze goede ratio door kosten te monitoren en volume te behouden.",
        })

    return alerts
