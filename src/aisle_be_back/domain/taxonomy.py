"""Fixed default taxonomy and vocabularies."""

DEFAULT_CATEGORIES: tuple[str, ...] = (
    "Produce",
    "Dairy",
    "Meat",
    "Seafood",
    "Deli",
    "Bakery",
    "Frozen",
    "Pantry",
    "Beverages",
    "Household",
    "Personal Care",
    "Baby",
    "Pets",
    "Other",
)

SUB_CATEGORIES: dict[str, tuple[str, ...]] = {
    "Produce": ("Fruits", "Vegetables", "Herbs", "Organic"),
    "Dairy": ("Milk", "Cheese", "Yogurt", "Butter", "Eggs", "Alternatives"),
    "Meat": ("Beef", "Poultry", "Pork", "Lamb", "Sausage", "Deli Meat"),
    "Seafood": ("Fish", "Shellfish", "Frozen Fish"),
    "Bakery": ("Bread", "Pastries", "Tortillas", "Cakes"),
    "Frozen": ("Meals", "Vegetables", "Ice Cream", "Pizza"),
    "Pantry": ("Grains", "Canned Goods", "Baking", "Spices", "Snacks", "Pasta"),
    "Beverages": ("Water", "Soda", "Juice", "Coffee", "Tea", "Alcohol"),
    "Household": ("Cleaning", "Paper Products", "Laundry", "Kitchen"),
    "Personal Care": ("Hygiene", "Skincare", "First Aid", "Vitamins"),
    "Other": ("General",),
}

UNITS: tuple[str, ...] = ("pc", "oz", "lb", "ml", "lt", "gal", "count", "pack", "kg", "g")

# (name, sort_order) pairs seeded before the first successful fetch.
DEFAULT_STORAGE: tuple[tuple[str, int], ...] = (
    ("Pantry - Main", 0),
    ("Refrigerator #1", 1),
    ("Freezer #1", 2),
)

NATIONAL_STORES: tuple[str, ...] = (
    "Walmart",
    "Target",
    "Costco",
    "Whole Foods",
    "Trader Joe's",
    "Aldi",
    "Kroger",
    "Safeway",
    "Publix",
)

CELLAR_CATEGORIES: tuple[str, ...] = ("Wine", "Beer", "Spirits")
