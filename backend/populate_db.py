import os
import sys

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from database import SessionLocal, init_db
from models.product import Product
from utils.catalog import slugify
from utils.store_settings import fetch_settings, save_settings

# Demo catalog for a fresh database
DEMO_PRODUCTS = [
    {
        "name": "Oud Royale",
        "brand": "Maison Aroma",
        "gender": "unisex",
        "perfume_type": "originals",
        "description_text": "Smoky oud wrapped in rose and saffron.",
        "variants": [
            {"size": "10ml", "price": 2500, "discount_price": None, "in_stock": True},
            {"size": "50ml", "price": 9500, "discount_price": 8500, "in_stock": True},
            {"size": "100ml", "price": 16500, "discount_price": None, "in_stock": False},
        ],
        "main_accords": [
            {"name": "oud", "percentage": 90, "color_hex": "#5b3a29"},
            {"name": "rose", "percentage": 60, "color_hex": "#e75480"},
        ],
    },
    {
        "name": "Citrus Bloom",
        "brand": "Aroma Notes",
        "gender": "female",
        "perfume_type": "inspired",
        "description_text": "Bergamot, neroli and white musk.",
        "variants": [
            {"size": "50ml", "price": 5000, "discount_price": None, "in_stock": True},
            {"size": "100ml", "price": 8000, "discount_price": 7200, "in_stock": True},
        ],
        "main_accords": [{"name": "citrus", "percentage": 85, "color_hex": "#f9e04b"}],
    },
    {
        "name": "Midnight Vetiver",
        "brand": "Aroma Notes",
        "gender": "male",
        "perfume_type": "inspired",
        "description_text": "Earthy vetiver with black pepper.",
        "variants": [
            {"size": "50ml", "price": 4500, "discount_price": None, "in_stock": False},
            {"size": "100ml", "price": 7500, "discount_price": None, "in_stock": False},
        ],
        "main_accords": [],
    },
]


def load_demo_data():
    """Seeds demo products and the store settings document when missing."""
    init_db()
    session = SessionLocal()
    try:
        created = 0
        for data in DEMO_PRODUCTS:
            slug = slugify(data["name"])
            if session.query(Product).filter(Product.slug == slug).first():
                continue
            session.add(Product(slug=slug, **data))
            created += 1
        session.commit()
        print(f"Added {created} demo products.")

        current = fetch_settings(session)
        save_settings(session, {"delivery_fee": current.delivery_fee})
        print(f"Delivery fee set to {current.delivery_fee}.")
    finally:
        session.close()


if __name__ == "__main__":
    load_demo_data()
