"""Facility categorization from establishment name and address.

Categories are scanned in table order. A category whose keyword appears in
the lowercased ``"<name> <address>"`` text replaces the current best only
when its priority is strictly greater, so among equal priorities the first
category in the table wins. Restaurant has no keywords and is the default.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FacilityCategory:
    name: str
    priority: int
    keywords: tuple[str, ...] = ()


DEFAULT_CATEGORY = FacilityCategory(name="Restaurant", priority=-999)

FACILITY_TAXONOMY: tuple[FacilityCategory, ...] = (
    FacilityCategory(
        "School",
        10,
        (
            "school",
            "elementary",
            "middle school",
            "high school",
            "preschool",
            "daycare",
            "day care",
            "childcare",
            "child care",
            "university",
            "college",
            "academy",
            "kindergarten",
            "head start",
        ),
    ),
    FacilityCategory(
        "Senior/Community Center",
        9,
        (
            "nutrition program",
            "senior center",
            "elderly",
            "retirement",
            "assisted living",
            "nursing home",
            "care center",
            "community center",
            "senior living",
            "memory care",
            "adult day",
        ),
    ),
    FacilityCategory(
        "Fast Food",
        8,
        (
            "mcdonalds",
            "mcdonald's",
            "burger king",
            "subway",
            "taco bell",
            "wendy",
            "wendys",
            "kfc",
            "arby",
            "domino",
            "pizza hut",
            "papa john",
            "sonic",
            "dairy queen",
            "dq ",
            "popeyes",
            "chick-fil-a",
            "chipotle",
            "panera",
            "jimmy john",
            "qdoba",
            "taco john",
            "culver",
            "raising cane",
            "five guys",
            "shake shack",
            "whataburger",
            "drive thru",
            "drive-thru",
        ),
    ),
    FacilityCategory(
        "Gas Station/Convenience",
        7,
        (
            "casey",
            "kum & go",
            "kum and go",
            "kwik trip",
            "kwik star",
            "quiktrip",
            "quick trip",
            "bp ",
            "shell",
            "git n go",
            "git-n-go",
            "conoco",
            "phillips 66",
            "7-eleven",
            "speedway",
            "pilot",
            "flying j",
            "circle k",
            "marathon",
            "loves",
            "gas station",
            "convenience store",
            "c-store",
            "truck stop",
        ),
    ),
    FacilityCategory(
        "Grocery Store",
        6,
        (
            "hy-vee",
            "aldi",
            "walmart",
            "target",
            "fareway",
            "whole foods",
            "trader joe",
            "fresh thyme",
            "natural grocers",
            "kroger",
            "costco",
            "sam's club",
            "sams club",
            "grocery store",
            "grocery",
            "market",
            "supermarket",
            "food mart",
            "food market",
            "asian market",
            "asian grocery",
            "international market",
            "ethnic market",
        ),
    ),
    FacilityCategory(
        "Bar/Brewery/Distillery",
        5,
        (
            "bar",
            "pub",
            "brewery",
            "brewing",
            "brewpub",
            "taproom",
            "tavern",
            "lounge",
            "saloon",
            "sports bar",
            "nightclub",
            "night club",
            "distillery",
            "winery",
            "wine bar",
            "cocktail lounge",
            "cocktail bar",
        ),
    ),
    FacilityCategory(
        "Coffee Shop/Cafe",
        4,
        (
            "starbucks",
            "caribou",
            "dunkin",
            "peet's",
            "dutch bros",
            "tim horton",
            "coffee",
            "cafe",
            "café",
            "espresso",
            "coffee shop",
            "coffee house",
            "coffeehouse",
        ),
    ),
    FacilityCategory(
        "Bakery/Dessert",
        3,
        (
            "bakery",
            "cupcake",
            "donut",
            "doughnut",
            "ice cream",
            "gelato",
            "frozen yogurt",
            "candy",
            "chocolate",
            "sweet",
            "pastry",
            "cookies",
            "dessert",
            "confection",
            "cake",
            "fudge",
            "yogurt shop",
        ),
    ),
    FacilityCategory(
        "Hotel/Lodging",
        2,
        (
            "hotel",
            "motel",
            "inn",
            "resort",
            "lodge",
            "embassy suites",
            "holiday inn",
            "marriott",
            "hilton",
            "hampton",
            "hyatt",
            "sheraton",
            "radisson",
            "comfort inn",
            "best western",
            "la quinta",
            "courtyard",
            "residence inn",
        ),
    ),
    FacilityCategory(
        "Recreation Facility",
        1,
        (
            "bowling",
            "golf",
            "country club",
            "athletic club",
            "fitness",
            "gym",
            "pool hall",
            "billiards",
            "skating",
            "rink",
            "laser tag",
            "arcade",
            "theater",
            "cinema",
            "ymca",
            "ywca",
            "pickleball",
            "tennis club",
            "sports complex",
        ),
    ),
    FacilityCategory(
        "Food Truck/Mobile",
        0,
        (
            "food truck",
            "mobile",
            " cart",
            "food cart",
            "trailer",
            "vendor",
            "mobile kitchen",
            "mobile food",
        ),
    ),
    FacilityCategory(
        "Catering",
        -1,
        ("catering", "caterer", "banquet", "event catering"),
    ),
    DEFAULT_CATEGORY,
)


def match_category(name: str, address: str = "") -> FacilityCategory:
    """Return the highest-priority category whose keyword matches."""
    text = f"{name} {address}".lower()
    best = DEFAULT_CATEGORY
    for category in FACILITY_TAXONOMY:
        if category.priority <= best.priority:
            continue
        if any(keyword.lower() in text for keyword in category.keywords):
            best = category
    return best


def categorize_facility(name: str, address: str = "") -> str:
    return match_category(name, address).name
