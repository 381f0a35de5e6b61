from datetime import datetime, timezone
from enum import Enum

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def utcnow():
    return datetime.now(timezone.utc)


class Role(str, Enum):
    ADMIN = 'ADMIN'
    CLERK = 'CLERK'


class InventoryStatus(str, Enum):
    PENDING = 'PENDING'
    APPROVED = 'APPROVED'
    REJECTED = 'REJECTED'


class BillStatus(str, Enum):
    PENDING = 'PENDING'
    PAID = 'PAID'
    CANCELLED = 'CANCELLED'


class TransactionStatus(str, Enum):
    PENDING = 'PENDING'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'


class ReturnStatus(str, Enum):
    PENDING = 'PENDING'
    APPROVED = 'APPROVED'
    REJECTED = 'REJECTED'


class PaymentMethod(str, Enum):
    CASH = 'CASH'
    CARD = 'CARD'
    BANK_TRANSFER = 'BANK_TRANSFER'


class TimestampMixin:
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)


# Identity
class UserAccount(TimestampMixin, db.Model):
    __tablename__ = 'user_accounts'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(191), unique=True, nullable=False)
    password = db.Column(db.String(191), nullable=False)
    email = db.Column(db.String(191), unique=True, nullable=False)
    role = db.Column(db.Enum(Role), nullable=False, default=Role.CLERK)
    first_name = db.Column(db.String(191), nullable=False)
    last_name = db.Column(db.String(191), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)


class SchoolProfile(TimestampMixin, db.Model):
    __tablename__ = 'school_profile'
    id = db.Column(db.Integer, primary_key=True)
    school_name = db.Column(db.String(191), nullable=False)
    address = db.Column(db.String(191), nullable=False)
    contact_person = db.Column(db.String(191), nullable=False)
    phone = db.Column(db.String(191), nullable=False)
    email = db.Column(db.String(191), nullable=False)
    is_approved = db.Column(db.Boolean, nullable=False, default=False)


# Catalog
class Author(TimestampMixin, db.Model):
    __tablename__ = 'author'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(191), nullable=False)
    biography = db.Column(db.String(191))
    is_active = db.Column(db.Boolean, nullable=False, default=True)


class Book(TimestampMixin, db.Model):
    __tablename__ = 'books'
    id = db.Column(db.Integer, primary_key=True)
    isbn = db.Column(db.String(191), unique=True, nullable=False)
    title = db.Column(db.String(191), nullable=False)
    description = db.Column(db.String(191))
    price = db.Column(db.Numeric(10, 2), nullable=False)
    publisher = db.Column(db.String(191), nullable=False)
    published_date = db.Column(db.DateTime, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)


class BookAuthor(db.Model):
    __tablename__ = 'book_authors'
    __table_args__ = (db.UniqueConstraint('book_id', 'author_id'),)
    id = db.Column(db.Integer, primary_key=True)
    book_id = db.Column(db.Integer, db.ForeignKey('books.id'), nullable=False)
    author_id = db.Column(db.Integer, db.ForeignKey('author.id'), nullable=False)
    book = db.relationship('Book', backref='book_authors')
    author = db.relationship('Author', backref='book_authors')


class BookDetail(TimestampMixin, db.Model):
    __tablename__ = 'book_detail'
    id = db.Column(db.Integer, primary_key=True)
    book_id = db.Column(db.Integer, db.ForeignKey('books.id'), nullable=False)
    edition = db.Column(db.String(191), nullable=False)
    format = db.Column(db.String(191), nullable=False)
    pages = db.Column(db.Integer, nullable=False)
    language = db.Column(db.String(191), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    book = db.relationship('Book', backref='details')


# Inventory
class Stock(TimestampMixin, db.Model):
    __tablename__ = 'stocks'
    id = db.Column(db.Integer, primary_key=True)
    book_id = db.Column(db.Integer, db.ForeignKey('books.id'), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    location = db.Column(db.String(191), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    book = db.relationship('Book', backref='stocks')


class WarehouseStock(TimestampMixin, db.Model):
    __tablename__ = 'warehouse_stock'
    id = db.Column(db.Integer, primary_key=True)
    book_id = db.Column(db.Integer, db.ForeignKey('books.id'), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    book = db.relationship('Book', backref='warehouse_stocks')


class SchoolStock(TimestampMixin, db.Model):
    __tablename__ = 'school_stock'
    __table_args__ = (db.UniqueConstraint('school_id', 'book_id'),)
    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, db.ForeignKey('school_profile.id'), nullable=False)
    book_id = db.Column(db.Integer, db.ForeignKey('books.id'), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    school = db.relationship('SchoolProfile', backref='stocks')
    book = db.relationship('Book', backref='school_stocks')


class SchoolInventory(TimestampMixin, db.Model):
    __tablename__ = 'school_inventory'
    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, db.ForeignKey('school_profile.id'), nullable=False)
    book_id = db.Column(db.Integer, db.ForeignKey('books.id'), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    status = db.Column(db.Enum(InventoryStatus), nullable=False, default=InventoryStatus.PENDING)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    school = db.relationship('SchoolProfile', backref='inventory')
    book = db.relationship('Book', backref='school_inventory')


# Commerce
class Customer(TimestampMixin, db.Model):
    __tablename__ = 'customer'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(191), nullable=False)
    email = db.Column(db.String(191), unique=True, nullable=False)
    phone = db.Column(db.String(191), nullable=False)
    address = db.Column(db.String(191), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)


class Bill(TimestampMixin, db.Model):
    __tablename__ = 'bill'
    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('customer.id'), nullable=False)
    bill_number = db.Column(db.String(191), unique=True, nullable=False)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(db.Enum(BillStatus), nullable=False, default=BillStatus.PENDING)
    payment_method = db.Column(db.Enum(PaymentMethod))
    paid_amount = db.Column(db.Numeric(10, 2))
    paid_at = db.Column(db.DateTime)
    customer = db.relationship('Customer', backref='bills')


class BillDetail(TimestampMixin, db.Model):
    __tablename__ = 'bill_details'
    id = db.Column(db.Integer, primary_key=True)
    bill_id = db.Column(db.Integer, db.ForeignKey('bill.id'), nullable=False)
    book_id = db.Column(db.Integer, db.ForeignKey('books.id'), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)
    bill = db.relationship('Bill', backref='details')
    book = db.relationship('Book')


class SchoolSalesTransaction(TimestampMixin, db.Model):
    __tablename__ = 'school_sales_transaction'
    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, db.ForeignKey('school_profile.id'), nullable=False)
    transaction_number = db.Column(db.String(191), unique=True, nullable=False)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(db.Enum(TransactionStatus), nullable=False, default=TransactionStatus.PENDING)
    payment_method = db.Column(db.Enum(PaymentMethod))
    paid_amount = db.Column(db.Numeric(10, 2))
    paid_at = db.Column(db.DateTime)
    school = db.relationship('SchoolProfile', backref='sales_transactions')


class SchoolSalesTransactionDetail(TimestampMixin, db.Model):
    __tablename__ = 'school_sales_transaction_detail'
    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey('school_sales_transaction.id'), nullable=False)
    book_id = db.Column(db.Integer, db.ForeignKey('books.id'), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)
    transaction = db.relationship('SchoolSalesTransaction', backref='details')
    book = db.relationship('Book')


class ReturnedBook(TimestampMixin, db.Model):
    __tablename__ = 'returned_book'
    id = db.Column(db.Integer, primary_key=True)
    return_number = db.Column(db.String(191), unique=True, nullable=False)
    school_id = db.Column(db.Integer, db.ForeignKey('school_profile.id'), nullable=False)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(db.Enum(ReturnStatus), nullable=False, default=ReturnStatus.PENDING)
    approved_by = db.Column(db.Integer, db.ForeignKey('user_accounts.id'))
    approved_at = db.Column(db.DateTime)
    school = db.relationship('SchoolProfile', backref='returns')
    approver = db.relationship('UserAccount', backref='approved_returns')


class ReturnedBookDetail(TimestampMixin, db.Model):
    __tablename__ = 'returned_book_details'
    id = db.Column(db.Integer, primary_key=True)
    return_id = db.Column(db.Integer, db.ForeignKey('returned_book.id'), nullable=False)
    book_id = db.Column(db.Integer, db.ForeignKey('books.id'), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)
    reason = db.Column(db.String(191))
    returned_book = db.relationship('ReturnedBook', backref='details')
    book = db.relationship('Book')
