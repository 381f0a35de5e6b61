"""Seed the textbook distribution database with reference and sample data.

Every row is created at most once: reruns find the existing rows by username,
isbn, composite key or fixed id and leave them as they are.

Run: python seed_data.py  (or: flask --app app seed)
"""

from collections import namedtuple
from datetime import datetime, timezone
from decimal import Decimal
import logging
import sys

import bcrypt
from sqlalchemy.sql import text

from app import create_app
from models import (
    db, Role, InventoryStatus, BillStatus, TransactionStatus, ReturnStatus, PaymentMethod,
    UserAccount, SchoolProfile, Author, Book, BookAuthor, BookDetail, Stock, WarehouseStock,
    SchoolStock, SchoolInventory, Customer, Bill, BillDetail, SchoolSalesTransaction,
    SchoolSalesTransactionDetail, ReturnedBook, ReturnedBookDetail,
)

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 12
COMPLETION_MESSAGE = "Seed complete: admin & clerk users, sample data created."

SeedResult = namedtuple(
    'SeedResult',
    ['admin', 'clerk', 'school', 'author', 'book', 'customer', 'bill', 'sale', 'returned'],
)

ACCOUNTS = [
    {"username": "admin", "password": "Admin@123", "email": "admin@example.com",
     "first_name": "System", "last_name": "Administrator", "role": Role.ADMIN},
    {"username": "clerk", "password": "Clerk@123", "email": "clerk@example.com",
     "first_name": "Default", "last_name": "Clerk", "role": Role.CLERK},
]

SCHOOL = {
    "school_name": "Springfield High School",
    "address": "742 Evergreen Terrace",
    "contact_person": "Seymour Skinner",
    "phone": "555-1234",
    "email": "contact@springfieldhigh.edu",
    "is_approved": True,
}

AUTHOR = {"name": "John Doe", "biography": "Prolific author of educational materials."}

PUBLISHER = "Nehemiah Publishing"

ANCHOR_BOOK = {
    "isbn": "9780000000001",
    "title": "Algebra I",
    "description": "Foundations of Algebra for high school.",
    "price": Decimal("499.99"),
    "publisher": PUBLISHER,
    "published_date": datetime(2023, 8, 1),
    "is_active": True,
}


def _catalog_book(isbn, title, description, price, published_date):
    return {
        "isbn": isbn,
        "title": title,
        "description": description,
        "price": Decimal(price),
        "publisher": PUBLISHER,
        "published_date": published_date,
        "is_active": True,
    }


CATALOG_BOOKS = [
    _catalog_book("9780000000002", "Geometry Essentials", "Core concepts of Euclidean geometry.",
                  "459.99", datetime(2023, 9, 15)),
    _catalog_book("9780000000003", "Biology Basics", "Introduction to cellular and organismal biology.",
                  "529.99", datetime(2023, 7, 10)),
    _catalog_book("9780000000004", "Chemistry Fundamentals", "Atoms, molecules, and chemical reactions.",
                  "549.99", datetime(2023, 6, 20)),
    _catalog_book("9780000000005", "Physics Principles", "Mechanics, thermodynamics, and waves.",
                  "579.99", datetime(2023, 5, 5)),
    _catalog_book("9780000000006", "World History I", "Ancient civilizations through the medieval era.",
                  "399.99", datetime(2022, 11, 11)),
    _catalog_book("9780000000007", "World History II", "Renaissance to modern world events.",
                  "419.99", datetime(2023, 1, 20)),
    _catalog_book("9780000000008", "English Literature", "Selected readings and literary analysis.",
                  "469.99", datetime(2023, 3, 12)),
    _catalog_book("9780000000009", "Computer Science Intro", "Programming fundamentals and problem solving.",
                  "599.99", datetime(2024, 2, 1)),
    _catalog_book("9780000000010", "Economics 101", "Micro and macroeconomic principles.",
                  "489.99", datetime(2022, 9, 30)),
    _catalog_book("9780000000011", "Civics and Government", "Structures and functions of government.",
                  "379.99", datetime(2022, 8, 18)),
]

CUSTOMER = {
    "name": "Shelbyville Elementary",
    "email": "admin@shelbyville.edu",
    "phone": "555-5678",
    "address": "123 Elm St",
}

UNIT_PRICE = Decimal("499.99")


def hash_password(password):
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode('utf-8')


def _sync_id_sequence(session, model):
    # PostgreSQL serial sequences do not move when an id is given explicitly.
    bind = session.get_bind(mapper=model)
    if bind.dialect.name != 'postgresql':
        return
    table = model.__tablename__
    session.execute(text(
        f"SELECT setval(pg_get_serial_sequence('{table}', 'id'), (SELECT MAX(id) FROM {table}))"
    ))


def upsert(session, model, lookup, **values):
    """Return the row matching ``lookup``, creating it when absent.

    ``lookup`` holds the idempotency key: unique columns (``{"username": ...}``,
    ``{"book_id": ..., "author_id": ...}``) or a fixed primary key (``{"id": 1}``).
    A new row is built from ``lookup`` plus ``values`` and flushed so its id is
    available. An existing row is returned unchanged.
    """
    instance = session.query(model).filter_by(**lookup).first()
    if instance is not None:
        logger.debug(f"{model.__tablename__} row exists for {lookup}, leaving unchanged")
        return instance
    instance = model(**lookup, **values)
    session.add(instance)
    session.flush()
    if 'id' in lookup:
        _sync_id_sequence(session, model)
    logger.debug(f"{model.__tablename__} row created for {lookup}")
    return instance


def insert_missing_books(session, books):
    """Bulk-insert ``books``, skipping any isbn already stored. Returns the number inserted."""
    isbns = [b["isbn"] for b in books]
    seen = {isbn for (isbn,) in session.query(Book.isbn).filter(Book.isbn.in_(isbns))}
    missing = []
    for b in books:
        if b["isbn"] in seen:
            continue
        seen.add(b["isbn"])
        missing.append(Book(**b))
    session.add_all(missing)
    session.flush()
    logger.debug(f"Catalog books inserted: {len(missing)}, skipped: {len(books) - len(missing)}")
    return len(missing)


def seed(session):
    """Create the reference dataset in dependency order, committing after each step."""
    # Accounts
    hashed = {a["username"]: hash_password(a["password"]) for a in ACCOUNTS}
    accounts = {}
    for a in ACCOUNTS:
        fields = {k: v for k, v in a.items() if k not in ("username", "password")}
        accounts[a["username"]] = upsert(
            session, UserAccount, {"username": a["username"]},
            password=hashed[a["username"]], **fields
        )
    session.commit()
    admin, clerk = accounts["admin"], accounts["clerk"]
    logger.info("Accounts ready")

    school = upsert(session, SchoolProfile, {"id": 1}, **SCHOOL)
    session.commit()
    logger.info("School profile ready")

    author = upsert(session, Author, {"id": 1}, **AUTHOR)
    session.commit()
    logger.info("Author ready")

    book = upsert(session, Book, {"id": 1}, **ANCHOR_BOOK)
    session.commit()
    inserted = insert_missing_books(session, CATALOG_BOOKS)
    session.commit()
    logger.info(f"Books ready ({inserted} catalog books inserted)")

    upsert(session, BookAuthor, {"book_id": book.id, "author_id": author.id})
    session.commit()

    upsert(session, BookDetail, {"id": 1}, book_id=book.id, edition="1st", format="Paperback",
           pages=320, language="English", is_active=True)
    upsert(session, Stock, {"id": 1}, book_id=book.id, quantity=150, location="Warehouse A")
    upsert(session, WarehouseStock, {"id": 1}, book_id=book.id, quantity=500)
    session.commit()
    logger.info("Book detail and warehouse stock ready")

    upsert(session, SchoolStock, {"school_id": school.id, "book_id": book.id}, quantity=40)
    upsert(session, SchoolInventory, {"id": 1}, school_id=school.id, book_id=book.id,
           quantity=40, status=InventoryStatus.APPROVED)
    session.commit()
    logger.info("School stock ready")

    customer = upsert(session, Customer, {"id": 1}, **CUSTOMER)
    session.commit()

    now = datetime.now(timezone.utc)
    bill = upsert(session, Bill, {"id": 1}, customer_id=customer.id, bill_number="BILL-0001",
                  total_amount=Decimal("999.98"), status=BillStatus.PAID,
                  payment_method=PaymentMethod.CASH, paid_amount=Decimal("999.98"), paid_at=now)
    session.commit()
    upsert(session, BillDetail, {"id": 1}, bill_id=bill.id, book_id=book.id, quantity=2,
           unit_price=UNIT_PRICE, total_price=UNIT_PRICE * 2)
    session.commit()
    logger.info("Bill ready")

    sale = upsert(session, SchoolSalesTransaction, {"id": 1}, school_id=school.id,
                  transaction_number="TXN-0001", total_amount=UNIT_PRICE,
                  status=TransactionStatus.COMPLETED, payment_method=PaymentMethod.CASH,
                  paid_amount=UNIT_PRICE, paid_at=now)
    session.commit()
    upsert(session, SchoolSalesTransactionDetail, {"id": 1}, transaction_id=sale.id, book_id=book.id,
           quantity=1, unit_price=UNIT_PRICE, total_price=UNIT_PRICE)
    session.commit()
    logger.info("Sales transaction ready")

    returned = upsert(session, ReturnedBook, {"id": 1}, return_number="RET-0001", school_id=school.id,
                      total_amount=UNIT_PRICE, status=ReturnStatus.APPROVED,
                      approved_by=admin.id, approved_at=now)
    session.commit()
    upsert(session, ReturnedBookDetail, {"id": 1}, return_id=returned.id, book_id=book.id,
           quantity=1, unit_price=UNIT_PRICE, total_price=UNIT_PRICE, reason="Damaged")
    session.commit()
    logger.info("Return ready")

    return SeedResult(admin, clerk, school, author, book, customer, bill, sale, returned)


def run_seed(app):
    """Seed inside ``app``'s context. Returns the process exit status."""
    with app.app_context():
        try:
            db.create_all()
            seed(db.session)
        except Exception as e:
            logger.exception(f"Seeding failed: {str(e)}")
            return 1
        finally:
            db.session.remove()
            db.engine.dispose()
    print(f"✅ {COMPLETION_MESSAGE}")
    return 0


def main():
    sys.exit(run_seed(create_app()))


if __name__ == '__main__':
    main()
