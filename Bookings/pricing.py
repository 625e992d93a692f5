"""
Price list for gutter work.

``calculate_total_price`` is pure: the same selection always costs the
same, and 0 means the selection cannot be priced.
"""

from decimal import Decimal

from django.conf import settings

CLEANING_OPTION_PRICES = {
    "Garage": Decimal("40"),
    "Conservatory": Decimal("40"),
    "Extension": Decimal("40"),
    "None": Decimal("0"),
}

REPAIR_OPTIONS = (
    "Running Outlet",
    "Union Joint",
    "Corner",
    "Gutter Bracket",
    "Downpipe",
    "Gutter Length Replacement",
)

TOWN_HOUSE = "Town House/3 Stories"
BUNGALOW = "Bungalow"
GROUND = "Ground"

HOUSE_PRICES = {
    "Terrace": {
        "2 Bedroom": Decimal("69"),
        "3 Bedroom": Decimal("69"),
        "4 Bedroom": Decimal("79"),
        "5 Bedroom": Decimal("129"),
    },
    "Semi-Detached": {
        "2 Bedroom": Decimal("69"),
        "3 Bedroom": Decimal("79"),
        "4 Bedroom": Decimal("89"),
        "5 Bedroom": Decimal("99"),
    },
    "Detached": {
        "2 Bedroom": Decimal("79"),
        "3 Bedroom": Decimal("89"),
        "4 Bedroom": Decimal("99"),
        "5 Bedroom": Decimal("119"),
    },
    BUNGALOW: {
        "2 Bedroom": Decimal("79"),
        "3 Bedroom": Decimal("89"),
        "4 Bedroom": Decimal("99"),
        "5 Bedroom": Decimal("109"),
        GROUND: Decimal("0"),
    },
    TOWN_HOUSE: {
        "3 Bedroom": Decimal("129"),
        "4 Bedroom": Decimal("139"),
    },
}

TOWN_HOUSE_BEDROOMS = {"3 Bedroom", "4 Bedroom"}


def repair_price(home_style, bedrooms):
    if home_style == BUNGALOW and bedrooms == GROUND:
        return Decimal("45")
    if home_style == TOWN_HOUSE:
        return Decimal("85")
    return Decimal("65")


def calculate_total_price(selection):
    """
    Total for a booking selection, before VAT.

    ``selection`` holds select_service, select_home_style,
    number_of_bedrooms and the two option lists.
    """
    service = selection.get("select_service")
    home_style = selection.get("select_home_style")
    bedrooms = selection.get("number_of_bedrooms")

    if home_style == TOWN_HOUSE and bedrooms not in TOWN_HOUSE_BEDROOMS:
        return Decimal("0")

    total = Decimal("0")

    # House size only matters for cleaning
    if service == "Gutter Cleaning":
        total += HOUSE_PRICES.get(home_style, {}).get(bedrooms, Decimal("0"))
        for option in selection.get("gutter_cleaning_options") or []:
            total += CLEANING_OPTION_PRICES.get(option, Decimal("0"))

    if service == "Gutter Repair":
        per_option = repair_price(home_style, bedrooms)
        for option in selection.get("gutter_repairs_options") or []:
            if option in REPAIR_OPTIONS:
                total += per_option

    return total


def vat_breakdown(net_total, rate=None):
    """Split a pre-VAT total into net, VAT and gross amounts."""
    rate = Decimal(str(rate if rate is not None else settings.BOOKING_VAT_RATE))
    net_total = Decimal(net_total)
    vat = (net_total * rate).quantize(Decimal("0.01"))
    return {
        "net": net_total.quantize(Decimal("0.01")),
        "vat": vat,
        "gross": (net_total + vat).quantize(Decimal("0.01")),
    }
