"""
Shared fixtures: an in-memory database rebuilt for every test,
logged-in clients and small factories for schedules and bookings.
"""

import os

os.environ["BUSPORTAL_DATABASE_URI"] = "sqlite://"
os.environ["BUSPORTAL_BCRYPT_ROUNDS"] = "4"
os.environ.setdefault("BUSPORTAL_SECRET_KEY", "test-secret")
os.environ.setdefault("BUSPORTAL_LOG_LEVEL", "WARNING")

from datetime import date, datetime, timedelta

import pytest

import app as portal

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "Admin123!"
CUSTOMER_EMAIL = "jane@example.com"
CUSTOMER_PASSWORD = "secret1"


@pytest.fixture
def app():
    portal.app.config.update(TESTING=True)
    with portal.app.app_context():
        portal.db.drop_all()
        portal.db.create_all()
        portal.seed_defaults()
    yield portal.app
    with portal.app.app_context():
        portal.db.session.remove()
        portal.db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, email, password):
    """Log in through the form, answering the CAPTCHA from the session."""
    client.get("/login")
    with client.session_transaction() as sess:
        answer = sess["captcha_solution"]
    return client.post("/login", data={"email": email, "password": password, "captcha": answer})


@pytest.fixture
def make_customer(app):
    def _make(email=CUSTOMER_EMAIL, password=CUSTOMER_PASSWORD, name="Jane Doe"):
        with app.app_context():
            user = portal.User(name=name, email=email, phone_number="254712345678", role="Customer")
            user.set_password(password)
            customer = portal.Customer(name=name, email=email, phone_number="254712345678",
                                       nationality="Kenyan", gender="Female", passport_number="A1234567")
            portal.db.session.add_all([user, customer])
            portal.db.session.commit()
            return customer.id
    return _make


@pytest.fixture
def make_schedule(app):
    def _make(departure=None, cost=1500.0, start="Nairobi", destination="Kampala"):
        departure = departure or datetime.now().replace(microsecond=0) + timedelta(days=2)
        with app.app_context():
            n = portal.Schedule.query.count() + 1
            driver = portal.Staff(name=f"Driver {n}", phone_number="254700000001", email=f"driver{n}@example.com",
                                  staff_number=f"DRV-{n}", role="Driver")
            codriver = portal.Staff(name=f"Codriver {n}", phone_number="254700000002",
                                    email=f"codriver{n}@example.com", staff_number=f"COD-{n}", role="Co-Driver")
            bus = portal.Bus(bus_number=f"KBX {n}00A", year_of_manufacture=2018, capacity=37,
                             engine_number=f"ENG{n}", status="Active", mileage=12000)
            route = portal.Route(start_location=start, destination=destination, distance=650,
                                 route_name=f"{start} - {destination}", route_type="International",
                                 security="Escort")
            portal.db.session.add_all([driver, codriver, bus, route])
            portal.db.session.flush()
            schedule = portal.Schedule(bus_id=bus.id, route_id=route.id, departure_time=departure,
                                       arrival_time=departure + timedelta(hours=12), cost=cost,
                                       driver_id=driver.id, codriver_id=codriver.id)
            portal.db.session.add(schedule)
            portal.db.session.commit()
            return schedule.id
    return _make


@pytest.fixture
def make_booking(app):
    def _make(schedule_id, labels, customer_id, status="Confirmed"):
        with app.app_context():
            schedule = portal.db.session.get(portal.Schedule, schedule_id)
            booking = portal.Booking(customer_id=customer_id, schedule_id=schedule_id, booking_date=date.today(),
                                     travel_date=schedule.departure_time.date(), status=status)
            portal.assign_seats(booking, labels)
            portal.db.session.add(booking)
            portal.db.session.commit()
            return booking.id
    return _make


@pytest.fixture
def customer_client(app, make_customer):
    make_customer()
    c = app.test_client()
    login(c, CUSTOMER_EMAIL, CUSTOMER_PASSWORD)
    return c


@pytest.fixture
def admin_client(app):
    c = app.test_client()
    login(c, ADMIN_EMAIL, ADMIN_PASSWORD)
    return c
