"""Fixed vocabularies offered to clients for profiles and search filters."""

DIETARY_OPTIONS = (
    "Vegetarian",
    "Vegan",
    "Gluten-free",
    "Dairy-free",
    "Nut-free",
    "Halaal",
    "Kosher",
    "Paleo",
    "Keto",
    "Low-carb",
)

CUISINES = (
    "Italian",
    "French",
    "Asian",
    "Mediterranean",
    "South African",
    "Indian",
    "Mexican",
    "Japanese",
    "Thai",
    "Chinese",
)

SOUTH_AFRICAN_CITIES = (
    "Cape Town",
    "Johannesburg",
    "Durban",
    "Pretoria",
    "Port Elizabeth",
    "Bloemfontein",
    "East London",
    "Pietermaritzburg",
    "Nelspruit",
    "Kimberley",
    "Polokwane",
    "Rustenburg",
    "Witbank",
    "Klerksdorp",
    "Welkom",
)
