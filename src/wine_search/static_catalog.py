"""Bundled wine catalog in the flat product schema.

Prices are in major currency units. Tasting profiles use the flat
schema's `fruitness` key.
"""

STATIC_PRODUCTS = [
    {
        "sku": "WN-1001",
        "wine_name": "Chateau Margaux",
        "type": "red",
        "varietal": "Cabernet Sauvignon",
        "vintage": 2015,
        "country": "France",
        "region": "Bordeaux",
        "appellation": "Margaux",
        "price": 899.99,
        "tasting_profile": {
            "body": "full",
            "sweetness": "dry",
            "acidity": "medium",
            "tannin": "high",
            "fruitness": "dark fruit",
        },
    },
    {
        "sku": "WN-1002",
        "wine_name": "Cloudy Bay Sauvignon Blanc",
        "type": "white",
        "varietal": "Sauvignon Blanc",
        "vintage": 2022,
        "country": "New Zealand",
        "region": "Marlborough",
        "appellation": "Marlborough",
        "price": 32.5,
        "tasting_profile": {
            "body": "light",
            "sweetness": "dry",
            "acidity": "high",
            "tannin": "low",
            "fruitness": "citrus",
        },
    },
    {
        "sku": "WN-1003",
        "wine_name": "Penfolds Grange",
        "type": "red",
        "varietal": "Shiraz",
        "vintage": 2017,
        "country": "Australia",
        "region": "South Australia",
        "appellation": "Barossa Valley",
        "price": 1050.0,
        "tasting_profile": {
            "body": "full",
            "sweetness": "dry",
            "acidity": "medium",
            "tannin": "high",
            "fruitness": "blackberry",
        },
    },
    {
        "sku": "WN-1004",
        "wine_name": "Whispering Angel",
        "type": "rose",
        "varietal": "Grenache",
        "vintage": 2023,
        "country": "France",
        "region": "Provence",
        "appellation": "Cotes de Provence",
        "price": 24.99,
        "tasting_profile": {
            "body": "light",
            "sweetness": "dry",
            "acidity": "medium",
            "tannin": "low",
            "fruitness": "strawberry",
        },
    },
    {
        "sku": "WN-1005",
        "wine_name": "Tignanello",
        "type": "red",
        "varietal": "Sangiovese",
        "vintage": 2019,
        "country": "Italy",
        "region": "Tuscany",
        "appellation": "Toscana IGT",
        "price": 145.0,
        "tasting_profile": {
            "body": "full",
            "sweetness": "dry",
            "acidity": "high",
            "tannin": "medium",
            "fruitness": "cherry",
        },
    },
    {
        "sku": "WN-1006",
        "wine_name": "Dr. Loosen Blue Slate Riesling Kabinett",
        "type": "white",
        "varietal": "Riesling",
        "vintage": 2021,
        "country": "Germany",
        "region": "Mosel",
        "appellation": "Mosel",
        "price": 27.0,
        "tasting_profile": {
            "body": "light",
            "sweetness": "off-dry",
            "acidity": "high",
            "tannin": "low",
            "fruitness": "green apple",
        },
    },
    {
        "sku": "WN-1007",
        "wine_name": "Dom Perignon",
        "type": "sparkling",
        "varietal": "Chardonnay",
        "vintage": 2013,
        "country": "France",
        "region": "Champagne",
        "appellation": "Champagne AOC",
        "price": 299.0,
        "tasting_profile": {
            "body": "medium",
            "sweetness": "brut",
            "acidity": "high",
            "tannin": "low",
            "fruitness": "brioche and citrus",
        },
    },
    {
        "sku": "WN-1008",
        "wine_name": "Catena Zapata Adrianna Vineyard Malbec",
        "type": "red",
        "varietal": "Malbec",
        "vintage": 2018,
        "country": "Argentina",
        "region": "Mendoza",
        "appellation": "Gualtallary",
        "price": 620.0,
        "tasting_profile": {
            "body": "full",
            "sweetness": "dry",
            "acidity": "medium",
            "tannin": "high",
            "fruitness": "plum",
        },
    },
]
