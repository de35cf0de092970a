import os
import sys
from decimal import Decimal

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from dotenv import load_dotenv

load_dotenv()

from database import SessionLocal, init_db
from models.product import Product
from models.users import User, ROLE_ADMIN
from utils.hashing import get_password_hash

# Configuration
ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "Admin123!")

STARTER_CATALOG = [
    ("Laptop", "14-inch ultrabook, 16 GB RAM", "Electronics", "999.99", 50),
    ("Smartphone", "6.1-inch OLED display", "Electronics", "599.99", 100),
    ("Headphones", "Over-ear, noise cancelling", "Electronics", "99.99", 200),
    ("Desk Chair", "Ergonomic mesh chair", "Furniture", "199.99", 30),
    ("Monitor", "27-inch 1440p IPS", "Electronics", "299.99", 75),
    ("Keyboard", "Mechanical, tenkeyless", "Electronics", "79.99", 150),
    ("Coffee Table Book", "Architecture of the 20th century", "Books", "45.50", 40),
    ("Notebook", "A5 dotted, 120 pages", "Books", "12.00", 300),
]
# End Configuration


def ensure_admin(session) -> User:
    admin = session.query(User).filter(User.email == ADMIN_EMAIL.lower()).first()
    if admin:
        return admin
    admin = User(
        username="admin",
        email=ADMIN_EMAIL.lower(),
        password_hash=get_password_hash(ADMIN_PASSWORD),
        role=ROLE_ADMIN,
    )
    session.add(admin)
    session.commit()
    print(f"Created admin account {admin.email}")
    return admin


def seed_products(session) -> int:
    if session.query(Product).count() > 0:
        print("Catalog already populated, skipping products.")
        return 0
    session.add_all([
        Product(name=name, description=desc, category=cat, price=Decimal(price), stock=stock)
        for name, desc, cat, price, stock in STARTER_CATALOG
    ])
    session.commit()
    return len(STARTER_CATALOG)


def main():
    init_db()
    session = SessionLocal()
    try:
        ensure_admin(session)
        added = seed_products(session)
        print(f"Added {added} products.")
    finally:
        session.close()


if __name__ == "__main__":
    main()
