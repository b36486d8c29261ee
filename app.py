# app.py - International Bus Booking Portal (SQLite: db.db)
# Run:  python app.py
# Requires: pip install flask flask-login flask-sqlalchemy passlib[bcrypt] "bcrypt<5" itsdangerous

from flask import Flask, render_template, request, redirect, url_for, flash, jsonify, abort, session, Response
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager, login_user, logout_user, login_required, current_user, UserMixin
from passlib.hash import bcrypt
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from jinja2 import ChoiceLoader, DictLoader, FileSystemLoader
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from datetime import datetime, date, time, timedelta
from collections import namedtuple, OrderedDict
from functools import wraps
import os, random, string, csv, io, logging

import seats
from validation import (
    ValidationError, parse_date, check_not_empty, check_phone_number, convert_to_validation_format,
    format_date_input, date_range_for_period, validate_bus_form, validate_booking_form,
    validate_customer_form, validate_login_form, validate_signup_form, validate_forgot_password_form,
    validate_reset_password_form, validate_maintenance_form, validate_payment_form, validate_route_form,
    validate_schedule_form, validate_staff_form, validate_user_form, validate_search_form,
    validate_checkout_form, validate_activity_form, convert_date_format,
)
from page_templates import BASE, TPLS

APP_SECRET = os.environ.get("BUSPORTAL_SECRET_KEY", "change-this-secret")
DB_PATH = os.environ.get("BUSPORTAL_DATABASE_URI", "sqlite:///db.db")  # <-- db.db in the instance folder
BCRYPT_ROUNDS = int(os.environ.get("BUSPORTAL_BCRYPT_ROUNDS", "12"))
RESET_TOKEN_MAX_AGE = int(os.environ.get("BUSPORTAL_RESET_TOKEN_MAX_AGE", "3600"))  # seconds
CANCEL_CUTOFF_MINUTES = int(os.environ.get("BUSPORTAL_CANCEL_CUTOFF_MINUTES", "30"))
LOG_LEVEL = os.environ.get("BUSPORTAL_LOG_LEVEL", "INFO")
UPCOMING_DAYS = 7

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("busportal")

app = Flask(__name__)
app.config.update(
    SECRET_KEY=APP_SECRET,
    SQLALCHEMY_DATABASE_URI=DB_PATH,
    SQLALCHEMY_TRACK_MODIFICATIONS=False,
    BCRYPT_ROUNDS=BCRYPT_ROUNDS,
    RESET_TOKEN_MAX_AGE=RESET_TOKEN_MAX_AGE,
)
# files under templates/ override the built-in pages
app.jinja_loader = ChoiceLoader([
    FileSystemLoader(os.path.join(app.root_path, "templates")),
    DictLoader({"base.html": BASE, **TPLS}),
])

db = SQLAlchemy(app)
login_manager = LoginManager(app)
login_manager.login_view = "login"

ROLES = ("Customer", "Driver", "Co-Driver", "Technician", "Cashier", "Staff", "Admin")
STAFF_ROLES = ("Driver", "Co-Driver", "Technician", "Cashier", "Staff")
BOOKING_STATUSES = ("Pending", "Confirmed", "Cancelled")
BUS_STATUSES = ("Active", "Inactive", "Under Maintenance")
ROUTE_TYPES = ("Domestic", "International")
PAYMENT_STATUSES = ("Completed", "Pending", "Failed", "Refunded")
GENDERS = ("Male", "Female", "Other")
NATIONALITIES = ("Kenyan", "Ugandan", "Tanzanian", "Rwandan", "Burundian", "South Sudanese", "Ethiopian", "Other")

# -------------------- MODELS --------------------
class User(UserMixin, db.Model):
    __tablename__ = "users"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    phone_number = db.Column(db.String(20))
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), default="Customer")
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def set_password(self, password):
        self.password_hash = bcrypt.using(rounds=app.config["BCRYPT_ROUNDS"]).hash(password)

    def check_password(self, password):
        return bcrypt.verify(password, self.password_hash)

    def to_dict(self):
        return {"UserID": self.id, "Name": self.name, "Email": self.email,
                "PhoneNumber": self.phone_number, "Role": self.role}

class Customer(db.Model):
    __tablename__ = "customers"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    phone_number = db.Column(db.String(20))
    gender = db.Column(db.String(10))
    passport_number = db.Column(db.String(40))
    nationality = db.Column(db.String(60))

    bookings = db.relationship("Booking", back_populates="customer")

    def to_dict(self):
        return {"CustomerID": self.id, "Name": self.name, "Email": self.email, "PhoneNumber": self.phone_number,
                "Gender": self.gender, "PassportNumber": self.passport_number, "Nationality": self.nationality}

class Staff(db.Model):
    __tablename__ = "staff"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    phone_number = db.Column(db.String(20))
    email = db.Column(db.String(255))
    staff_number = db.Column(db.String(40), unique=True, nullable=False)
    role = db.Column(db.String(20), nullable=False)

    def to_dict(self):
        return {"StaffID": self.id, "Name": self.name, "PhoneNumber": self.phone_number,
                "Email": self.email, "StaffNumber": self.staff_number, "Role": self.role}

class Bus(db.Model):
    __tablename__ = "buses"
    id = db.Column(db.Integer, primary_key=True)
    bus_number = db.Column(db.String(40), unique=True, nullable=False)
    year_of_manufacture = db.Column(db.Integer)
    capacity = db.Column(db.Integer, nullable=False)
    engine_number = db.Column(db.String(60))
    status = db.Column(db.String(30), default="Active")
    mileage = db.Column(db.Float, default=0)

    schedules = db.relationship("Schedule", back_populates="bus")
    maintenance_records = db.relationship("Maintenance", back_populates="bus")

    def to_dict(self):
        return {"BusID": self.id, "BusNumber": self.bus_number, "YearOfManufacture": self.year_of_manufacture,
                "Capacity": self.capacity, "EngineNumber": self.engine_number, "Status": self.status,
                "Mileage": self.mileage}

class Route(db.Model):
    __tablename__ = "routes"
    id = db.Column(db.Integer, primary_key=True)
    start_location = db.Column(db.String(120), nullable=False)
    destination = db.Column(db.String(120), nullable=False)
    distance = db.Column(db.Float)
    route_name = db.Column(db.String(120), nullable=False)
    route_type = db.Column(db.String(30))
    security = db.Column(db.String(120))

    schedules = db.relationship("Schedule", back_populates="route")

    def to_dict(self):
        return {"RouteID": self.id, "StartLocation": self.start_location, "Destination": self.destination,
                "Distance": self.distance, "RouteName": self.route_name, "RouteType": self.route_type,
                "Security": self.security}

class Schedule(db.Model):
    __tablename__ = "schedules"
    id = db.Column(db.Integer, primary_key=True)
    bus_id = db.Column(db.Integer, db.ForeignKey("buses.id"), nullable=False)
    route_id = db.Column(db.Integer, db.ForeignKey("routes.id"), nullable=False)
    departure_time = db.Column(db.DateTime, nullable=False)
    arrival_time = db.Column(db.DateTime, nullable=False)
    cost = db.Column(db.Float, nullable=False)
    driver_id = db.Column(db.Integer, db.ForeignKey("staff.id"))
    codriver_id = db.Column(db.Integer, db.ForeignKey("staff.id"))

    bus = db.relationship("Bus", back_populates="schedules")
    route = db.relationship("Route", back_populates="schedules")
    driver = db.relationship("Staff", foreign_keys=[driver_id])
    codriver = db.relationship("Staff", foreign_keys=[codriver_id])
    bookings = db.relationship("Booking", back_populates="schedule")

    def to_dict(self):
        return {"ScheduleID": self.id, "BusID": self.bus_id, "RouteID": self.route_id,
                "DepartureTime": _fmt_datetime(self.departure_time), "ArrivalTime": _fmt_datetime(self.arrival_time),
                "Cost": self.cost, "DriverID": self.driver_id, "CodriverID": self.codriver_id}

class Booking(db.Model):
    __tablename__ = "bookings"
    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False)
    schedule_id = db.Column(db.Integer, db.ForeignKey("schedules.id"), nullable=False)
    seat_number = db.Column(db.String(120), nullable=False, default="")  # "1A,2B"; kept after cancellation
    booking_date = db.Column(db.Date, default=date.today)
    travel_date = db.Column(db.Date)
    status = db.Column(db.String(20), default="Pending")
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    customer = db.relationship("Customer", back_populates="bookings")
    schedule = db.relationship("Schedule", back_populates="bookings")
    seats = db.relationship("BookingSeat", back_populates="booking", cascade="all,delete-orphan",
                            order_by="BookingSeat.id")
    payments = db.relationship("Payment", back_populates="booking", cascade="all,delete-orphan")

    @property
    def seat_labels(self):
        return seats.flatten_booked_seats([self.seat_number or ""])

    @property
    def amount_due(self):
        return round(len(self.seat_labels) * (self.schedule.cost if self.schedule else 0), 2)

    @property
    def amount_paid(self):
        return round(sum(p.amount_paid for p in self.payments if p.status == "Completed"), 2)

    def to_dict(self):
        return {"BookingID": self.id, "CustomerID": self.customer_id, "ScheduleID": self.schedule_id,
                "SeatNumber": self.seat_number, "BookingDate": _fmt_date(self.booking_date),
                "TravelDate": _fmt_date(self.travel_date), "Status": self.status}

class BookingSeat(db.Model):
    """One held seat. The unique key is what stops two bookings sharing a seat."""
    __tablename__ = "booking_seats"
    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=False)
    schedule_id = db.Column(db.Integer, db.ForeignKey("schedules.id"), nullable=False)
    label = db.Column(db.String(4), nullable=False)

    booking = db.relationship("Booking", back_populates="seats")

    __table_args__ = (
        db.UniqueConstraint("schedule_id", "label", name="uq_schedule_seat"),
    )

class Payment(db.Model):
    __tablename__ = "payments"
    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=False)
    amount_paid = db.Column(db.Float, nullable=False)
    payment_mode = db.Column(db.String(30), nullable=False)
    payment_date = db.Column(db.DateTime, default=datetime.now)
    receipt_number = db.Column(db.String(40), unique=True)
    transaction_id = db.Column(db.String(60))
    status = db.Column(db.String(20), default="Completed")
    cashier_id = db.Column(db.Integer, db.ForeignKey("staff.id"))

    booking = db.relationship("Booking", back_populates="payments")

    def to_dict(self):
        return {"PaymentID": self.id, "BookingID": self.booking_id, "AmountPaid": self.amount_paid,
                "PaymentMode": self.payment_mode, "PaymentDate": _fmt_datetime(self.payment_date),
                "ReceiptNumber": self.receipt_number, "TransactionID": self.transaction_id, "Status": self.status}

class Maintenance(db.Model):
    __tablename__ = "maintenance"
    id = db.Column(db.Integer, primary_key=True)
    bus_id = db.Column(db.Integer, db.ForeignKey("buses.id"), nullable=False)
    service_done = db.Column(db.String(255), nullable=False)
    service_date = db.Column(db.Date, nullable=False)
    cost = db.Column(db.Float, default=0)
    material_used = db.Column(db.String(255))
    lsd = db.Column(db.Date)  # last service date
    nsd = db.Column(db.Date)  # next service date
    technician_id = db.Column(db.Integer, db.ForeignKey("staff.id"))

    bus = db.relationship("Bus", back_populates="maintenance_records")
    technician = db.relationship("Staff")

    def to_dict(self):
        return {"MaintenanceID": self.id, "BusID": self.bus_id, "ServiceDone": self.service_done,
                "ServiceDate": _fmt_date(self.service_date), "Cost": self.cost, "MaterialUsed": self.material_used,
                "LSD": _fmt_date(self.lsd), "NSD": _fmt_date(self.nsd), "TechnicianID": self.technician_id}

class Activity(db.Model):
    __tablename__ = "activity"
    id = db.Column(db.Integer, primary_key=True)
    description = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.now)
    who_did_it = db.Column(db.String(120))
    role = db.Column(db.String(20))

    # date and time are edited separately but stored as one timestamp
    @property
    def activity_date(self):
        return self.created_at.date() if self.created_at else None

    @activity_date.setter
    def activity_date(self, value):
        self.created_at = datetime.combine(value, self.activity_time or time.min)

    @property
    def activity_time(self):
        return self.created_at.time() if self.created_at else None

    @activity_time.setter
    def activity_time(self, value):
        self.created_at = datetime.combine(self.activity_date or date.today(), value)

    def to_dict(self):
        return {"ActivityID": self.id, "Description": self.description,
                "Date": self.created_at.strftime("%Y-%m-%d"), "Time": self.created_at.strftime("%H:%M:%S"),
                "WhoDidIt": self.who_did_it, "Role": self.role}

# -------------------- HELPERS --------------------
def _fmt_date(d):
    return d.isoformat() if d else None

def _fmt_datetime(dt):
    return dt.strftime("%Y-%m-%d %H:%M:%S") if dt else None

@app.template_filter("dmy")
def dmy(value):
    if isinstance(value, datetime):
        return value.strftime("%d-%m-%Y %H:%M")
    if isinstance(value, date):
        return value.strftime("%d-%m-%Y")
    return value or ""

@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))

@login_manager.unauthorized_handler
def unauthorized():
    if request.path.startswith("/api/"):
        return jsonify(status="error", message="Please log in"), 401
    flash("Please log in to continue", "warning")
    return redirect(url_for("login", next=request.path))

def roles_required(*roles):
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            if not current_user.is_authenticated or current_user.role not in roles:
                abort(403)
            return f(*args, **kwargs)
        return wrapper
    return decorator

admin_required = roles_required("Admin")

ROLE_HOME = {
    "Customer": "dashboard",
    "Driver": "driver_dashboard",
    "Co-Driver": "driver_dashboard",
    "Technician": "technician_dashboard",
    "Cashier": "staff_dashboard",
    "Staff": "staff_dashboard",
    "Admin": "admin_dashboard",
}

def role_home(user):
    return url_for(ROLE_HOME.get(user.role, "login"))

def log_activity(description, who=None, role=None):
    if who is None and current_user.is_authenticated:
        who, role = current_user.name, current_user.role
    db.session.add(Activity(description=description, who_did_it=who, role=role))

def _unique_code(prefix, model, attr):
    code = prefix + ''.join(random.choices(string.digits, k=8))
    while model.query.filter_by(**{attr: code}).first():
        code = prefix + ''.join(random.choices(string.digits, k=8))
    return code

def current_customer():
    customer = Customer.query.filter_by(email=current_user.email).first()
    if customer is None:
        customer = Customer(name=current_user.name, email=current_user.email, phone_number=current_user.phone_number)
        db.session.add(customer)
        db.session.flush()
    return customer

def current_staff():
    return Staff.query.filter_by(email=current_user.email).first()

def wants_json():
    return request.path.startswith("/api/")

def request_data():
    """A JSON object body, otherwise the posted form."""
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else request.form.to_dict()

def json_error(message, status=400, **extra):
    return jsonify(status="error", message=message, **extra), status

def _safe_next(target):
    return target if target and target.startswith("/") and not target.startswith("//") else None

# -------------------- SEAT BOOKING HELPERS --------------------
def booked_seat_groups(schedule_id, exclude_booking_id=None):
    """Comma-joined seat groups of every live booking on the schedule."""
    qry = Booking.query.filter(Booking.schedule_id == schedule_id, Booking.status != "Cancelled")
    if exclude_booking_id is not None:
        qry = qry.filter(Booking.id != exclude_booking_id)
    return [b.seat_number for b in qry.order_by(Booking.id).all() if b.seat_number]

def booked_seats(schedule_id, exclude_booking_id=None):
    return seats.flatten_booked_seats(booked_seat_groups(schedule_id, exclude_booking_id))

def assign_seats(booking, labels):
    if booking.seats:
        booking.seats.clear()
        db.session.flush()
    booking.seats.extend(BookingSeat(schedule_id=booking.schedule_id, label=label) for label in labels)
    booking.seat_number = ",".join(labels)

def release_seats(booking):
    booking.seats.clear()

def _selection_for(schedule_id):
    saved = session.get("seat_selection", {}).get(str(schedule_id), [])
    return seats.SeatSelection(booked_seats(schedule_id), saved)

def _remember_selection(schedule_id, selection):
    store = dict(session.get("seat_selection", {}))
    store[str(schedule_id)] = selection.selected
    session["seat_selection"] = store

def _forget_selection(schedule_id):
    store = dict(session.get("seat_selection", {}))
    store.pop(str(schedule_id), None)
    session["seat_selection"] = store

def _departs_soon(schedule):
    return schedule.departure_time - datetime.now() <= timedelta(minutes=CANCEL_CUTOFF_MINUTES)

# -------------------- AUTH --------------------
def _new_captcha():
    a, b = random.randint(1, 9), random.randint(1, 9)
    session["captcha_solution"] = str(a + b)
    return f"{a} + {b}"

@app.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "POST":
        solution = session.pop("captcha_solution", None)
        try:
            form = validate_login_form(request.form)
            check_not_empty(request.form.get("captcha"), "CAPTCHA")
        except ValidationError as e:
            flash(e.message, "danger")
            return render_template("login.html", captcha=_new_captcha())
        if request.form.get("captcha", "").strip() != solution:
            flash("CAPTCHA verification failed.", "danger")
            return render_template("login.html", captcha=_new_captcha())
        user = User.query.filter_by(email=form["email"]).first()
        if user and user.check_password(form["password"]):
            login_user(user)
            log_activity("User logged in", user.name, user.role)
            db.session.commit()
            logger.info("login ok: %s (%s)", user.email, user.role)
            return redirect(_safe_next(request.args.get("next")) or role_home(user))
        logger.warning("login failed for %s", form["email"])
        flash("Invalid email or password.", "danger")
    return render_template("login.html", captcha=_new_captcha())

@app.route("/signup", methods=["GET", "POST"])
def signup():
    if request.method == "POST":
        try:
            form = validate_signup_form(request.form)
        except ValidationError as e:
            flash(e.message, "danger")
            return render_template("signup.html")
        if User.query.filter_by(email=form["email"]).first():
            flash("Email already registered", "warning")
            return redirect(url_for("signup"))
        u = User(name=form["name"], email=form["email"], phone_number=form["phoneNumber"], role="Customer")
        u.set_password(form["password"])
        db.session.add(u)
        if not Customer.query.filter_by(email=form["email"]).first():
            db.session.add(Customer(name=form["name"], email=form["email"], phone_number=form["phoneNumber"]))
        log_activity("Customer signed up", u.name, u.role)
        db.session.commit()
        flash("Account created. Please login.", "success")
        return redirect(url_for("login"))
    return render_template("signup.html")

@app.route("/logout")
@login_required
def logout():
    log_activity("User logged out")
    db.session.commit()
    logout_user()
    flash("Logged out", "info")
    return redirect(url_for("login"))

def _reset_serializer():
    return URLSafeTimedSerializer(app.config["SECRET_KEY"], salt="password-reset")

@app.route("/forgot-password", methods=["GET", "POST"])
def forgot_password():
    if request.method == "POST":
        try:
            form = validate_forgot_password_form(request.form)
        except ValidationError as e:
            flash(e.message, "danger")
            return render_template("forgot.html")
        user = User.query.filter_by(email=form["email"]).first()
        if user:
            token = _reset_serializer().dumps(user.email)
            # no mail transport; the link goes to the log
            logger.info("password reset link for %s: %s", user.email,
                        url_for("reset_password", token=token, _external=True))
        flash("If this email exists, a reset link will be sent.", "info")
        return redirect(url_for("login"))
    return render_template("forgot.html")

@app.route("/reset-password/<token>", methods=["GET", "POST"])
def reset_password(token):
    try:
        email = _reset_serializer().loads(token, max_age=app.config["RESET_TOKEN_MAX_AGE"])
    except (SignatureExpired, BadSignature):
        flash("Reset link is invalid or has expired.", "danger")
        return redirect(url_for("forgot_password"))
    user = User.query.filter_by(email=email).first()
    if user is None:
        abort(404)
    if request.method == "POST":
        try:
            form = validate_reset_password_form(request.form)
        except ValidationError as e:
            flash(e.message, "danger")
            return render_template("reset.html", token=token)
        user.set_password(form["password"])
        log_activity("Password reset", user.name, user.role)
        db.session.commit()
        flash("Password updated. Please login.", "success")
        return redirect(url_for("login"))
    return render_template("reset.html", token=token)

# -------------------- CUSTOMER PAGES --------------------
def _upcoming_schedules(days=UPCOMING_DAYS):
    today = date.today()
    rows = (
        Schedule.query
        .filter(Schedule.departure_time >= datetime.combine(today, time.min))
        .filter(Schedule.departure_time < datetime.combine(today + timedelta(days=days), time.min))
        .order_by(Schedule.departure_time)
        .all()
    )
    out = []
    for s in rows:
        taken = len(booked_seats(s.id))
        out.append({"schedule": s, "seats_left": seats.TOTAL_SEATS - taken,
                    "status": "Full" if taken >= seats.TOTAL_SEATS else "Available"})
    return out

def _dashboard_stats(customer):
    total_spent = (
        db.session.query(func.sum(Payment.amount_paid))
        .select_from(Payment)
        .join(Booking, Payment.booking_id == Booking.id)
        .filter(Booking.customer_id == customer.id)
        .scalar()
    )
    upcoming = (
        Booking.query
        .filter(Booking.customer_id == customer.id, Booking.status == "Confirmed",
                Booking.travel_date >= date.today())
        .count()
    )
    return {"totalBookings": Booking.query.filter_by(customer_id=customer.id).count(),
            "totalSpent": round(total_spent or 0.0, 2), "upcomingTrips": upcoming}

@app.route("/")
@login_required
def dashboard():
    if current_user.role != "Customer":
        return redirect(role_home(current_user))
    customer = current_customer()
    db.session.commit()
    return render_template("dashboard.html", stats=_dashboard_stats(customer), schedules=_upcoming_schedules())

@app.route("/api/dashboard")
@login_required
@roles_required("Customer")
def api_dashboard():
    customer = current_customer()
    db.session.commit()
    schedules = []
    for row in _upcoming_schedules():
        s = row["schedule"]
        schedules.append({"ScheduleID": s.id, "StartLocation": s.route.start_location,
                          "Destination": s.route.destination, "DepartureTime": _fmt_datetime(s.departure_time),
                          "ArrivalTime": _fmt_datetime(s.arrival_time), "Cost": s.cost,
                          "BusNumber": s.bus.bus_number, "status": row["status"]})
    return jsonify(status="success", stats=_dashboard_stats(customer), schedules=schedules)

@app.route("/search")
@login_required
def search_buses():
    results = None
    if request.args:
        try:
            form = validate_search_form(request.args)
        except ValidationError as e:
            flash(e.message, "danger")
        else:
            day = form["date"]
            results = (
                Schedule.query.join(Route)
                .filter(func.lower(Route.start_location) == form["from"].lower())
                .filter(func.lower(Route.destination) == form["to"].lower())
                .filter(Schedule.departure_time >= datetime.combine(day, time.min))
                .filter(Schedule.departure_time < datetime.combine(day + timedelta(days=1), time.min))
                .order_by(Schedule.departure_time)
                .all()
            )
    locations = sorted({r.start_location for r in Route.query.all()} | {r.destination for r in Route.query.all()})
    return render_template("search.html", results=results, locations=locations)

@app.route("/schedules/<int:schedule_id>/seats")
@login_required
@roles_required("Customer")
def seat_selection(schedule_id):
    schedule = db.get_or_404(Schedule, schedule_id)
    _forget_selection(schedule.id)  # a fresh page starts with nothing picked
    layout = seats.build_seat_layout(booked_seats(schedule.id))
    return render_template("seats.html", schedule=schedule, layout=layout,
                           selection=seats.SeatSelection(()), max_seats=seats.MAX_SELECTION)

@app.route("/api/schedules/<int:schedule_id>/booked-seats")
@login_required
def api_booked_seats(schedule_id):
    schedule = db.get_or_404(Schedule, schedule_id)
    return jsonify(status="success", scheduleID=schedule.id, bookedSeats=booked_seat_groups(schedule.id))

@app.route("/api/schedules/<int:schedule_id>/seats/toggle", methods=["POST"])
@login_required
@roles_required("Customer")
def api_toggle_seat(schedule_id):
    schedule = db.get_or_404(Schedule, schedule_id)
    label = str(request_data().get("seat") or "").strip().upper()
    selection = _selection_for(schedule.id)
    try:
        action = selection.toggle(label)
    except seats.SeatUnavailable as e:
        logger.debug("schedule %s: refused booked seat %s", schedule.id, label)
        return json_error(str(e), 409, seat=label, **selection.state())
    except seats.SeatSelectionError as e:
        logger.debug("schedule %s: refused seat %s: %s", schedule.id, label, e)
        return json_error(str(e), 400, seat=label, **selection.state())
    _remember_selection(schedule.id, selection)
    return jsonify(status="success", action=action, seat=label, **selection.state())

@app.route("/schedules/<int:schedule_id>/seats/confirm", methods=["POST"])
@login_required
@roles_required("Customer")
def confirm_seats(schedule_id):
    schedule = db.get_or_404(Schedule, schedule_id)
    selection = _selection_for(schedule.id)
    if not selection.selected:
        flash("Please select at least one seat.", "warning")
        return redirect(url_for("seat_selection", schedule_id=schedule.id))
    return render_template("seat_confirm.html", schedule=schedule, selection=selection,
                           message=seats.confirmation_message(selection.selected),
                           total=round(len(selection) * schedule.cost, 2))

@app.route("/schedules/<int:schedule_id>/book", methods=["POST"])
@login_required
@roles_required("Customer")
def book_seats(schedule_id):
    schedule = db.get_or_404(Schedule, schedule_id)
    requested = list(session.get("seat_selection", {}).get(str(schedule.id), []))
    if not requested:
        flash("Please select at least one seat.", "warning")
        return redirect(url_for("seat_selection", schedule_id=schedule.id))

    # the stored selection may be stale; the database decides
    taken = sorted(set(requested) & set(booked_seats(schedule.id)))
    if taken:
        _forget_selection(schedule.id)
        flash(f"Seat(s) {', '.join(taken)} were booked by someone else. Please choose again.", "danger")
        return redirect(url_for("seat_selection", schedule_id=schedule.id))

    customer = current_customer()
    booking = Booking(customer_id=customer.id, schedule_id=schedule.id, booking_date=date.today(),
                      travel_date=schedule.departure_time.date(), status="Pending")
    assign_seats(booking, requested)
    db.session.add(booking)
    log_activity(f"Booked seats {booking.seat_number} on schedule {schedule.id}")
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        _forget_selection(schedule.id)
        logger.warning("seat conflict on schedule %s for %s", schedule.id, requested)
        flash("Those seats were just taken. Please choose again.", "danger")
        return redirect(url_for("seat_selection", schedule_id=schedule.id))

    _forget_selection(schedule.id)
    logger.info("booking %s: schedule %s seats %s", booking.id, schedule.id, booking.seat_number)
    flash("Seats reserved. Complete payment to confirm.", "success")
    return redirect(url_for("payment", booking_id=booking.id))

def _own_booking(booking_id):
    b = db.get_or_404(Booking, booking_id)
    if current_user.role == "Admin":
        return b
    if b.customer is None or b.customer.email != current_user.email:
        abort(403)
    return b

@app.route("/payment/<int:booking_id>", methods=["GET", "POST"])
@login_required
@roles_required("Customer")
def payment(booking_id):
    b = _own_booking(booking_id)
    if b.status != "Pending":
        flash(f"Booking #{b.id} is {b.status.lower()}; no payment needed.", "info")
        return redirect(url_for("my_bookings"))
    if request.method == "POST":
        try:
            form = validate_checkout_form(dict(request.form.to_dict(), bookingID=str(b.id)))
        except ValidationError as e:
            flash(e.message, "danger")
            return render_template("payment.html", b=b)
        p = Payment(
            booking_id=b.id,
            amount_paid=b.amount_due,
            payment_mode=form["paymentMode"],
            payment_date=datetime.now(),
            receipt_number=_unique_code("RC", Payment, "receipt_number"),
            transaction_id=_unique_code("TX", Payment, "transaction_id"),
            status="Completed",
        )
        db.session.add(p)
        b.status = "Confirmed"
        log_activity(f"Paid {p.amount_paid:.2f} for booking {b.id}")
        db.session.commit()
        logger.info("payment %s for booking %s via %s", p.receipt_number, b.id, p.payment_mode)
        flash(f"Payment received. Receipt {p.receipt_number}.", "success")
        return redirect(url_for("my_bookings"))
    return render_template("payment.html", b=b)

@app.route("/my-bookings")
@login_required
@roles_required("Customer")
def my_bookings():
    customer = current_customer()
    db.session.commit()
    now = datetime.now()
    upcoming, past = [], []
    for b in Booking.query.filter_by(customer_id=customer.id).order_by(Booking.created_at.desc()).all():
        if b.schedule.departure_time > now and b.status in ("Confirmed", "Pending"):
            upcoming.append(b)
        else:
            past.append(b)
    return render_template("my_bookings.html", upcoming=upcoming, past=past, cutoff=CANCEL_CUTOFF_MINUTES)

@app.route("/booking/<int:booking_id>")
@login_required
def booking_detail(booking_id):
    b = _own_booking(booking_id)
    return render_template("booking_detail.html", b=b)

@app.route("/booking/<int:booking_id>/cancel", methods=["GET", "POST"])
@login_required
@roles_required("Customer")
def booking_cancel(booking_id):
    b = _own_booking(booking_id)
    if b.status == "Cancelled":
        flash("Booking already cancelled", "info")
        return redirect(url_for("my_bookings"))
    if _departs_soon(b.schedule):
        flash(f"Cannot cancel within {CANCEL_CUTOFF_MINUTES} minutes of departure.", "warning")
        return redirect(url_for("my_bookings"))
    if request.method == "GET":
        return render_template("confirm.html", title="Cancel booking",
                               message=f"Cancel booking #{b.id} for seats {b.seat_number}?",
                               action=url_for("booking_cancel", booking_id=b.id),
                               back=url_for("my_bookings"))
    b.status = "Cancelled"
    release_seats(b)
    log_activity(f"Cancelled booking {b.id}")
    db.session.commit()
    logger.info("booking %s cancelled by customer", b.id)
    flash("Booking cancelled", "info")
    return redirect(url_for("my_bookings"))

@app.route("/payments")
@login_required
@roles_required("Customer")
def payment_history():
    customer = current_customer()
    db.session.commit()
    payments = (
        Payment.query.join(Booking, Payment.booking_id == Booking.id)
        .filter(Booking.customer_id == customer.id)
        .order_by(Payment.payment_date.desc())
        .all()
    )
    return render_template("payments.html", payments=payments)

@app.route("/profile", methods=["GET", "POST"])
@login_required
def profile():
    customer = Customer.query.filter_by(email=current_user.email).first() if current_user.role == "Customer" else None
    if request.method == "POST":
        try:
            if customer is not None:
                form = validate_customer_form(dict(request.form.to_dict(), email=current_user.email))
            else:
                form = {"name": check_not_empty(request.form.get("name"), "Name"),
                        "phoneNumber": check_phone_number(request.form.get("phoneNumber"))}
            new_password = None
            if request.form.get("password"):
                new_password = validate_reset_password_form(request.form)["password"]
        except ValidationError as e:
            flash(e.message, "danger")
            return redirect(url_for("profile"))
        current_user.name = form["name"]
        current_user.phone_number = form["phoneNumber"]
        if customer is not None:
            customer.name = form["name"]
            customer.phone_number = form["phoneNumber"]
            customer.passport_number = form["passportNumber"]
            customer.nationality = form["nationality"]
            customer.gender = form["gender"]
        staff = current_staff() if current_user.role in STAFF_ROLES else None
        if staff is not None:
            staff.name = form["name"]
            staff.phone_number = form["phoneNumber"]
        if new_password:
            current_user.set_password(new_password)
        log_activity("Profile updated")
        db.session.commit()
        flash("Profile updated", "success")
        return redirect(url_for("profile"))
    return render_template("profile.html", customer=customer, nationalities=NATIONALITIES, genders=GENDERS)

# -------------------- STAFF DASHBOARDS --------------------
@app.route("/driver")
@login_required
@roles_required("Driver", "Co-Driver")
def driver_dashboard():
    staff = current_staff()
    schedules = []
    if staff:
        schedules = (
            Schedule.query
            .filter(or_(Schedule.driver_id == staff.id, Schedule.codriver_id == staff.id))
            .order_by(Schedule.departure_time)
            .all()
        )
    return render_template("driver.html", schedules=schedules, staff=staff)

@app.route("/driver/schedules/<int:schedule_id>/passengers")
@login_required
@roles_required("Driver", "Co-Driver", "Admin")
def schedule_passengers(schedule_id):
    schedule = db.get_or_404(Schedule, schedule_id)
    if current_user.role != "Admin":
        staff = current_staff()
        if staff is None or staff.id not in (schedule.driver_id, schedule.codriver_id):
            abort(403)
    bookings = (
        Booking.query.filter(Booking.schedule_id == schedule.id, Booking.status != "Cancelled")
        .order_by(Booking.id)
        .all()
    )
    return render_template("passengers.html", schedule=schedule, bookings=bookings)

def maintenance_status(nsd, today=None):
    """'Overdue' once the next service date has passed, otherwise 'Ready'."""
    today = today or date.today()
    return "Overdue" if nsd is not None and nsd < today else "Ready"

def _technician_stats(staff):
    jobs = Maintenance.query.filter(Maintenance.technician_id == staff.id)
    total_cost = (
        db.session.query(func.coalesce(func.sum(Maintenance.cost), 0))
        .filter(Maintenance.technician_id == staff.id)
        .scalar()
    )
    buses = (
        db.session.query(func.count(func.distinct(Maintenance.bus_id)))
        .filter(Maintenance.technician_id == staff.id)
        .scalar()
    )
    return {
        "totalTasks": jobs.count(),
        "totalCost": round(float(total_cost or 0), 2),
        "busesServiced": buses,
        "recentServices": jobs.filter(Maintenance.service_date >= date.today() - timedelta(days=30)).count(),
    }

def _bus_statuses():
    now = datetime.now()
    out = []
    for bus in Bus.query.order_by(Bus.bus_number).all():
        upcoming = (
            Schedule.query.filter(Schedule.bus_id == bus.id, Schedule.departure_time >= now)
            .order_by(Schedule.departure_time)
            .first()
        )
        latest = (
            Maintenance.query.filter_by(bus_id=bus.id)
            .order_by(Maintenance.service_date.desc(), Maintenance.id.desc())
            .first()
        )
        nsd = latest.nsd if latest else None
        out.append({"BusNumber": bus.bus_number,
                    "RouteName": upcoming.route.route_name if upcoming else None,
                    "NextDepartureTime": _fmt_datetime(upcoming.departure_time) if upcoming else None,
                    "NSD": _fmt_date(nsd),
                    "MaintenanceStatus": maintenance_status(nsd)})
    return out

def _technician_data(staff):
    if staff is None:
        return {"stats": None, "maintenanceTasks": [], "busStatus": []}
    records = Maintenance.query.filter_by(technician_id=staff.id).order_by(Maintenance.service_date.desc()).all()
    return {"stats": _technician_stats(staff), "maintenanceTasks": records, "busStatus": _bus_statuses()}

@app.route("/technician")
@login_required
@roles_required("Technician")
def technician_dashboard():
    staff = current_staff()
    data = _technician_data(staff)
    return render_template("technician.html", staff=staff, stats=data["stats"],
                           records=data["maintenanceTasks"], bus_status=data["busStatus"])

@app.route("/api/technician")
@login_required
@roles_required("Technician")
def api_technician():
    staff = current_staff()
    if staff is None:
        return jsonify(status="no_staff")
    data = _technician_data(staff)
    tasks = [dict(m.to_dict(), BusNumber=m.bus.bus_number) for m in data["maintenanceTasks"]]
    return jsonify(status="success", stats=data["stats"], maintenanceTasks=tasks, busStatus=data["busStatus"])

@app.route("/staff")
@login_required
@roles_required("Staff", "Cashier")
def staff_dashboard():
    today = date.today()
    schedules = (
        Schedule.query
        .filter(Schedule.departure_time >= datetime.combine(today, time.min))
        .filter(Schedule.departure_time < datetime.combine(today + timedelta(days=1), time.min))
        .order_by(Schedule.departure_time)
        .all()
    )
    return render_template("staff.html", schedules=schedules)

# -------------------- ADMIN RESOURCES --------------------
Field = namedtuple("Field", "name label attr kind choices ref", defaults=("text", None, None))

class Resource:
    """An admin-managed table: its form fields, validator and list columns."""

    def __init__(self, name, title, model, fields, validate, columns, after_apply=None, in_use=None):
        self.name = name
        self.title = title
        self.model = model
        self.fields = fields
        self.validate = validate
        self.columns = columns
        self.after_apply = after_apply
        self.in_use = in_use

    def form_values(self, obj=None):
        values = {}
        for f in self.fields:
            v = getattr(obj, f.attr, None) if obj is not None else None
            if f.kind == "password" or v is None:
                values[f.name] = ""
            elif f.kind == "date":
                values[f.name] = v.strftime("%d-%m-%Y")
            elif f.kind == "datetime":
                values[f.name] = v.strftime("%d-%m-%Y %H:%M:%S")
            elif f.kind == "time":
                values[f.name] = v.strftime("%H:%M")
            elif isinstance(v, float) and v.is_integer():
                values[f.name] = str(int(v))
            else:
                values[f.name] = str(v)
        return values

    def normalise(self, data):
        """Accept stored (YYYY-MM-DD) dates as well as DD-MM-YYYY."""
        data = {k: ("" if v is None else str(v)) for k, v in data.items()}
        for f in self.fields:
            value = data.get(f.name, "")
            if f.kind == "date":
                data[f.name] = convert_to_validation_format(value.strip())
            elif f.kind == "datetime" and " " in value.strip():
                d, t = value.strip().split(" ", 1)
                data[f.name] = f"{convert_to_validation_format(d)} {t}"
        return data

    def apply(self, obj, data, creating):
        cleaned = self.validate(self.normalise(data), creating)
        for f in self.fields:
            if f.name not in cleaned:
                continue
            value = cleaned[f.name]
            if f.choices and value not in f.choices:
                raise ValidationError(f"Please select a valid option for {f.label}", f.name)
            if f.ref is not None and db.session.get(f.ref, value) is None:
                raise ValidationError(f"{f.label} {value} does not exist", f.name)
            if f.kind == "password":
                obj.set_password(value)
            elif f.kind != "seats":
                setattr(obj, f.attr, value)
        if self.after_apply:
            self.after_apply(obj, cleaned)
        return obj

def _apply_booking_seats(booking, cleaned):
    labels = seats.flatten_booked_seats([cleaned["seatNumber"]])
    unknown = [s for s in labels if not seats.is_valid_seat(s)]
    if unknown:
        raise ValidationError(f"Unknown seat(s): {', '.join(unknown)}", "seatNumber")
    if len(set(labels)) != len(labels):
        raise ValidationError("Seat Number lists the same seat twice", "seatNumber")
    if booking.status == "Cancelled":
        release_seats(booking)
        booking.seat_number = ",".join(labels)
        return
    taken = sorted(set(labels) & set(booked_seats(booking.schedule_id, exclude_booking_id=booking.id)))
    if taken:
        raise ValidationError(f"Seat(s) already booked: {', '.join(taken)}", "seatNumber")
    assign_seats(booking, labels)

RESOURCES = OrderedDict((r.name, r) for r in [
    Resource(
        "bookings", "Bookings", Booking,
        [Field("customerID", "Customer ID", "customer_id", "int", ref=Customer),
         Field("scheduleID", "Schedule ID", "schedule_id", "int", ref=Schedule),
         Field("seatNumber", "Seat Number", "seat_number", "seats"),
         Field("bookingDate", "Booking Date", "booking_date", "date"),
         Field("travelDate", "Travel Date", "travel_date", "date"),
         Field("status", "Status", "status", "select", BOOKING_STATUSES)],
        lambda form, creating: validate_booking_form(form),
        ["BookingID", "CustomerID", "ScheduleID", "SeatNumber", "BookingDate", "TravelDate", "Status"],
        after_apply=_apply_booking_seats,
    ),
    Resource(
        "customers", "Customers", Customer,
        [Field("name", "Name", "name"),
         Field("email", "Email", "email", "email"),
         Field("phoneNumber", "Phone Number", "phone_number"),
         Field("passportNumber", "Passport Number", "passport_number"),
         Field("nationality", "Nationality", "nationality", "select", NATIONALITIES),
         Field("gender", "Gender", "gender", "radio", GENDERS)],
        lambda form, creating: validate_customer_form(form),
        ["CustomerID", "Name", "Email", "PhoneNumber", "Gender", "PassportNumber", "Nationality"],
        in_use=lambda c: bool(c.bookings),
    ),
    Resource(
        "payments", "Payments", Payment,
        [Field("bookingID", "Booking ID", "booking_id", "int", ref=Booking),
         Field("amountPaid", "Amount Paid", "amount_paid", "number"),
         Field("paymentMode", "Payment Mode", "payment_mode"),
         Field("paymentDate", "Payment Date", "payment_date", "datetime"),
         Field("receiptNumber", "Receipt Number", "receipt_number"),
         Field("transactionID", "Transaction ID", "transaction_id"),
         Field("status", "Status", "status", "select", PAYMENT_STATUSES)],
        lambda form, creating: validate_payment_form(form),
        ["PaymentID", "BookingID", "AmountPaid", "PaymentMode", "PaymentDate", "ReceiptNumber", "TransactionID",
         "Status"],
    ),
    Resource(
        "schedules", "Schedules", Schedule,
        [Field("busID", "Bus ID", "bus_id", "int", ref=Bus),
         Field("routeID", "Route ID", "route_id", "int", ref=Route),
         Field("departureTime", "Departure Time", "departure_time", "datetime"),
         Field("arrivalTime", "Arrival Time", "arrival_time", "datetime"),
         Field("cost", "Cost", "cost", "number"),
         Field("driverID", "Driver ID", "driver_id", "int", ref=Staff),
         Field("codriverID", "Co-driver ID", "codriver_id", "int", ref=Staff)],
        lambda form, creating: validate_schedule_form(form),
        ["ScheduleID", "BusID", "RouteID", "DepartureTime", "ArrivalTime", "Cost", "DriverID", "CodriverID"],
        in_use=lambda s: bool(s.bookings),
    ),
    Resource(
        "staff", "Staff", Staff,
        [Field("name", "Name", "name"),
         Field("phoneNumber", "Phone Number", "phone_number"),
         Field("email", "Email", "email", "email"),
         Field("staffNumber", "Staff Number", "staff_number"),
         Field("role", "Role", "role", "select", STAFF_ROLES)],
        lambda form, creating: validate_staff_form(form),
        ["StaffID", "Name", "PhoneNumber", "Email", "StaffNumber", "Role"],
        in_use=lambda s: Schedule.query.filter(
            or_(Schedule.driver_id == s.id, Schedule.codriver_id == s.id)).first() is not None,
    ),
    Resource(
        "buses", "Buses", Bus,
        [Field("busNumber", "Bus Number", "bus_number"),
         Field("yearOfManufacture", "Year of Manufacture", "year_of_manufacture", "int"),
         Field("capacity", "Capacity", "capacity", "int"),
         Field("engineNumber", "Engine Number", "engine_number"),
         Field("status", "Status", "status", "select", BUS_STATUSES),
         Field("mileage", "Mileage", "mileage", "number")],
        lambda form, creating: validate_bus_form(form),
        ["BusID", "BusNumber", "YearOfManufacture", "Capacity", "EngineNumber", "Status", "Mileage"],
        in_use=lambda b: bool(b.schedules or b.maintenance_records),
    ),
    Resource(
        "routes", "Routes", Route,
        [Field("startLocation", "Start Location", "start_location"),
         Field("destination", "Destination", "destination"),
         Field("distance", "Distance", "distance", "number"),
         Field("routeName", "Route Name", "route_name"),
         Field("routeType", "Route Type", "route_type", "select", ROUTE_TYPES),
         Field("security", "Security", "security")],
        lambda form, creating: validate_route_form(form),
        ["RouteID", "StartLocation", "Destination", "Distance", "RouteName", "RouteType", "Security"],
        in_use=lambda r: bool(r.schedules),
    ),
    Resource(
        "activity", "Activity", Activity,
        [Field("description", "Description", "description"),
         Field("whoDidIt", "Who Did It", "who_did_it"),
         Field("role", "Role", "role", "select", ROLES),
         Field("date", "Date", "activity_date", "date"),
         Field("time", "Time", "activity_time", "time")],
        lambda form, creating: validate_activity_form(form),
        ["ActivityID", "Description", "Date", "Time", "WhoDidIt", "Role"],
    ),
    Resource(
        "maintenance", "Maintenance", Maintenance,
        [Field("busID", "Bus ID", "bus_id", "int", ref=Bus),
         Field("serviceDone", "Service Done", "service_done"),
         Field("serviceDate", "Service Date", "service_date", "date"),
         Field("cost", "Cost", "cost", "number"),
         Field("materialUsed", "Material Used", "material_used"),
         Field("lsd", "Last Service Date (LSD)", "lsd", "date"),
         Field("nsd", "Next Service Date (NSD)", "nsd", "date"),
         Field("technicianID", "Technician ID", "technician_id", "int", ref=Staff)],
        lambda form, creating: validate_maintenance_form(form),
        ["MaintenanceID", "BusID", "ServiceDone", "ServiceDate", "Cost", "LSD", "NSD", "TechnicianID"],
    ),
    Resource(
        "users", "Users", User,
        [Field("name", "Name", "name"),
         Field("email", "Email", "email", "email"),
         Field("phoneNumber", "Phone Number", "phone_number"),
         Field("role", "Role", "role", "select", ROLES),
         Field("password", "Password", "password_hash", "password")],
        lambda form, creating: validate_user_form(form, password_required=creating),
        ["UserID", "Name", "Email", "PhoneNumber", "Role"],
    ),
])

def _resource_or_404(name):
    resource = RESOURCES.get(name)
    if resource is None:
        abort(404)
    return resource

def _save(resource, obj, data, creating):
    """Validate and commit one create/update. Returns an error message or None."""
    try:
        resource.apply(obj, data, creating)
        if creating:
            db.session.add(obj)
        db.session.flush()
        log_activity(f"{'Added' if creating else 'Updated'} {resource.name} #{obj.id}")
        db.session.commit()
    except ValidationError as e:
        db.session.rollback()
        return e.message
    except IntegrityError:
        db.session.rollback()
        logger.warning("%s write rejected by a unique constraint", resource.name)
        return "A record with the same unique value already exists."
    logger.info("%s %s #%s", resource.name, "created" if creating else "updated", obj.id)
    return None

def _delete(resource, obj):
    if resource.in_use and resource.in_use(obj):
        return f"{resource.title} #{obj.id} is still referenced by other records."
    db.session.delete(obj)
    log_activity(f"Deleted {resource.name} #{obj.id}")
    db.session.commit()
    logger.info("%s #%s deleted", resource.name, obj.id)
    return None

def _cancel_booking(b):
    b.status = "Cancelled"
    release_seats(b)
    log_activity(f"Cancelled booking {b.id}")
    db.session.commit()
    logger.info("booking %s cancelled by admin", b.id)

# -------------------- ADMIN --------------------
@app.route("/admin")
@login_required
@admin_required
def admin_dashboard():
    today = date.today()
    todays_schedules = (
        Schedule.query
        .filter(Schedule.departure_time >= datetime.combine(today, time.min))
        .filter(Schedule.departure_time < datetime.combine(today + timedelta(days=1), time.min))
        .order_by(Schedule.departure_time)
        .all()
    )
    counts = OrderedDict((r.title, r.model.query.count()) for r in RESOURCES.values())
    return render_template("admin/index.html", todays_schedules=todays_schedules, counts=counts,
                           resources=RESOURCES)

@app.route("/admin/<resource_name>")
@login_required
@admin_required
def admin_list(resource_name):
    resource = _resource_or_404(resource_name)
    rows = [obj.to_dict() for obj in resource.model.query.order_by(resource.model.id.desc()).all()]
    return render_template("admin/list.html", resource=resource, rows=rows)

@app.route("/admin/<resource_name>/new", methods=["GET", "POST"])
@login_required
@admin_required
def admin_new(resource_name):
    resource = _resource_or_404(resource_name)
    values = resource.form_values()
    if request.method == "POST":
        obj = resource.model()
        error = _save(resource, obj, request.form.to_dict(), creating=True)
        if error is None:
            flash(f"{resource.title} record created", "success")
            return redirect(url_for("admin_list", resource_name=resource.name))
        flash(error, "danger")
        values = request.form.to_dict()
    return render_template("admin/form.html", resource=resource, values=values, obj_id=None)

@app.route("/admin/<resource_name>/<int:obj_id>/edit", methods=["GET", "POST"])
@login_required
@admin_required
def admin_edit(resource_name, obj_id):
    resource = _resource_or_404(resource_name)
    obj = db.get_or_404(resource.model, obj_id)
    values = resource.form_values(obj)
    if request.method == "POST":
        error = _save(resource, obj, request.form.to_dict(), creating=False)
        if error is None:
            flash(f"{resource.title} record updated", "success")
            return redirect(url_for("admin_list", resource_name=resource.name))
        flash(error, "danger")
        values = request.form.to_dict()
    return render_template("admin/form.html", resource=resource, values=values, obj_id=obj_id)

@app.route("/admin/<resource_name>/<int:obj_id>/delete", methods=["GET", "POST"])
@login_required
@admin_required
def admin_delete(resource_name, obj_id):
    resource = _resource_or_404(resource_name)
    obj = db.get_or_404(resource.model, obj_id)
    back = url_for("admin_list", resource_name=resource.name)
    if request.method == "GET":
        return render_template("confirm.html", title=f"Delete {resource.title}",
                               message=f"Delete {resource.title.lower()} record #{obj.id}? This cannot be undone.",
                               action=url_for("admin_delete", resource_name=resource.name, obj_id=obj.id),
                               back=back)
    error = _delete(resource, obj)
    flash(error or f"{resource.title} record deleted", "danger" if error else "success")
    return redirect(back)

@app.route("/admin/bookings/<int:booking_id>/cancel", methods=["POST"])
@login_required
@admin_required
def admin_booking_cancel(booking_id):
    b = db.get_or_404(Booking, booking_id)
    if b.status == "Cancelled":
        flash("Booking already cancelled", "info")
    else:
        _cancel_booking(b)
        flash("Booking cancelled", "success")
    return redirect(url_for("admin_list", resource_name="bookings"))

# -------------------- ADMIN API (AJAX) --------------------
@app.route("/api/admin/<resource_name>", methods=["GET", "POST"])
@login_required
@admin_required
def api_admin_collection(resource_name):
    resource = _resource_or_404(resource_name)
    if request.method == "GET":
        rows = resource.model.query.order_by(resource.model.id).all()
        return jsonify(status="success", data=[obj.to_dict() for obj in rows])
    obj = resource.model()
    error = _save(resource, obj, request_data(), creating=True)
    if error:
        return json_error(error, 400)
    return jsonify(status="success", message=f"{resource.title} record created", data=obj.to_dict()), 201

@app.route("/api/admin/<resource_name>/<int:obj_id>", methods=["GET", "PUT", "POST", "DELETE"])
@login_required
@admin_required
def api_admin_item(resource_name, obj_id):
    resource = _resource_or_404(resource_name)
    obj = db.get_or_404(resource.model, obj_id)
    if request.method == "GET":
        return jsonify(status="success", data=obj.to_dict())
    if request.method == "DELETE":
        error = _delete(resource, obj)
        if error:
            return json_error(error, 409)
        return jsonify(status="success", message=f"{resource.title} record deleted")
    error = _save(resource, obj, request_data(), creating=False)
    if error:
        return json_error(error, 400)
    return jsonify(status="success", message=f"{resource.title} record updated", data=obj.to_dict())

@app.route("/api/admin/bookings/<int:booking_id>/cancel", methods=["POST"])
@login_required
@admin_required
def api_admin_booking_cancel(booking_id):
    b = db.get_or_404(Booking, booking_id)
    if b.status == "Cancelled":
        return json_error("Booking already cancelled", 409)
    _cancel_booking(b)
    return jsonify(status="success", message="Booking cancelled", data=b.to_dict())

# -------------------- REPORTS --------------------
def _date_range(column, start, end):
    if start is None:
        return []
    return [column >= start, column <= end]

def _datetime_range(column, start, end):
    if start is None:
        return []
    return [column >= datetime.combine(start, time.min),
            column < datetime.combine(end + timedelta(days=1), time.min)]

def report_system_usage(start, end):
    in_range = _date_range(Booking.booking_date, start, end)
    return {
        "TotalBookings": Booking.query.filter(*in_range).count(),
        "ActiveCustomers": db.session.query(func.count(func.distinct(Booking.customer_id))).filter(*in_range).scalar(),
        "ActiveStaff": Staff.query.count(),
        "ActiveBuses": Bus.query.filter_by(status="Active").count(),
    }

def report_revenue(start, end):
    in_range = _datetime_range(Payment.payment_date, start, end)
    total = func.sum(Payment.amount_paid)
    day = func.date(Payment.payment_date)
    summary = db.session.query(day, total).filter(*in_range).group_by(day).order_by(day.desc()).all()
    by_route = (
        db.session.query(Route.route_name, Route.start_location, Route.destination, total)
        .select_from(Payment)
        .join(Booking, Payment.booking_id == Booking.id)
        .join(Schedule, Booking.schedule_id == Schedule.id)
        .join(Route, Schedule.route_id == Route.id)
        .filter(*in_range)
        .group_by(Route.id, Route.route_name, Route.start_location, Route.destination)
        .order_by(total.desc())
        .all()
    )
    by_mode = (
        db.session.query(Payment.payment_mode, total)
        .filter(*in_range).group_by(Payment.payment_mode).order_by(total.desc()).all()
    )
    by_nationality = (
        db.session.query(Customer.nationality, total)
        .select_from(Payment)
        .join(Booking, Payment.booking_id == Booking.id)
        .join(Customer, Booking.customer_id == Customer.id)
        .filter(*in_range)
        .group_by(Customer.nationality)
        .order_by(total.desc())
        .all()
    )
    return {
        "summary": [{"PaymentDate": str(d), "TotalRevenue": round(t or 0, 2)} for d, t in summary],
        "byRoute": [{"RouteName": n, "StartLocation": s, "Destination": dst, "TotalRevenue": round(t or 0, 2)}
                    for n, s, dst, t in by_route],
        "byPaymentMode": [{"PaymentMode": m, "TotalRevenue": round(t or 0, 2)} for m, t in by_mode],
        "byNationality": [{"Nationality": n or "Unknown", "TotalRevenue": round(t or 0, 2)}
                          for n, t in by_nationality],
    }

def report_user_activity(start, end):
    rows = (
        Activity.query.filter(*_datetime_range(Activity.created_at, start, end))
        .order_by(Activity.created_at.desc(), Activity.id.desc())
        .all()
    )
    return [a.to_dict() for a in rows]

def report_booking_summary(start, end):
    per_day = OrderedDict()
    rows = Booking.query.filter(*_date_range(Booking.booking_date, start, end)).order_by(Booking.booking_date.desc())
    for b in rows.all():
        entry = per_day.setdefault(b.booking_date, {"BookingDate": _fmt_date(b.booking_date),
                                                    "Bookings": 0, "SeatsBooked": 0})
        entry["Bookings"] += 1
        entry["SeatsBooked"] += len(b.seat_labels)
    return list(per_day.values())

def report_maintenance(start, end):
    rows = (
        Maintenance.query.filter(*_date_range(Maintenance.service_date, start, end))
        .order_by(Maintenance.service_date.desc())
        .all()
    )
    return [m.to_dict() for m in rows]

def report_booking_status(start, end):
    count = func.count(Booking.id)
    rows = (
        db.session.query(Booking.status, count)
        .filter(*_date_range(Booking.booking_date, start, end))
        .group_by(Booking.status)
        .order_by(count.desc())
        .all()
    )
    return [{"Status": s, "Count": c} for s, c in rows]

def report_bus_utilization(start, end):
    out = []
    for bus in Bus.query.order_by(Bus.bus_number).all():
        trips = Schedule.query.filter(Schedule.bus_id == bus.id,
                                      *_datetime_range(Schedule.departure_time, start, end)).all()
        seats_booked = sum(len(b.seat_labels) for s in trips for b in s.bookings if b.status != "Cancelled")
        out.append({"BusNumber": bus.bus_number, "TripsScheduled": len(trips), "SeatsBooked": seats_booked})
    out.sort(key=lambda r: r["TripsScheduled"], reverse=True)
    return out

def report_route_popularity(start, end):
    count = func.count(Booking.id)
    rows = (
        db.session.query(Route.route_name, Route.start_location, Route.destination, count)
        .select_from(Route)
        .join(Schedule, Schedule.route_id == Route.id)
        .join(Booking, Booking.schedule_id == Schedule.id)
        .filter(*_date_range(Booking.booking_date, start, end))
        .group_by(Route.id, Route.route_name, Route.start_location, Route.destination)
        .order_by(count.desc())
        .all()
    )
    return [{"RouteName": n, "StartLocation": s, "Destination": d, "Bookings": c} for n, s, d, c in rows]

def report_drivers_activity(start, end):
    out = []
    for staff in Staff.query.filter(Staff.role.in_(("Driver", "Co-Driver"))).all():
        trips = Schedule.query.filter(or_(Schedule.driver_id == staff.id, Schedule.codriver_id == staff.id),
                                      *_datetime_range(Schedule.departure_time, start, end)).count()
        out.append({"StaffName": staff.name, "Role": staff.role, "TripsAssigned": trips})
    out.sort(key=lambda r: r["TripsAssigned"], reverse=True)
    return out

REPORTS = OrderedDict([
    ("system-usage", report_system_usage),
    ("revenue", report_revenue),
    ("user-activity", report_user_activity),
    ("booking-summary", report_booking_summary),
    ("maintenance", report_maintenance),
    ("booking-status", report_booking_status),
    ("bus-utilization", report_bus_utilization),
    ("route-popularity", report_route_popularity),
    ("drivers-activity", report_drivers_activity),
])

def _report_range(start, end):
    """Both ends or neither. Takes YYYY-MM-DD or DD-MM-YYYY."""
    start, end = (start or "").strip(), (end or "").strip()
    if not start and not end:
        return None, None
    s = parse_date(convert_to_validation_format(start), "Start Date")
    e = parse_date(convert_to_validation_format(end), "End Date")
    if s > e:
        raise ValidationError("Start Date cannot be after End Date", "start")
    return s, e

@app.route("/api/admin/reports/<report_name>")
@login_required
@admin_required
def api_report(report_name):
    report = REPORTS.get(report_name)
    if report is None:
        abort(404)
    try:
        start, end = _report_range(request.args.get("start"), request.args.get("end"))
    except ValidationError as e:
        return json_error(e.message, 400)
    return jsonify(status="success", report=report_name, data=report(start, end))

@app.route("/admin/reports")
@login_required
@admin_required
def admin_reports():
    period = request.args.get("period", "")
    if period:
        start_text, end_text = date_range_for_period(period)
    else:
        start_text = format_date_input(request.args.get("start", ""))
        end_text = format_date_input(request.args.get("end", ""))
    try:
        start, end = _report_range(start_text, end_text)
    except ValidationError as e:
        flash(e.message, "danger")
        start = end = None
        start_text = end_text = ""
    data = OrderedDict((name, fn(start, end)) for name, fn in REPORTS.items())
    # the JSON endpoints take YYYY-MM-DD
    api_args = {"start": convert_date_format(start_text), "end": convert_date_format(end_text)} if start else {}
    api_links = {name: url_for("api_report", report_name=name, **api_args) for name in REPORTS}
    return render_template("admin/reports.html", data=data, period=period, start=start_text, end=end_text,
                           api_links=api_links)

@app.route("/admin/reports.csv")
@login_required
@admin_required
def admin_reports_csv():
    buf = io.StringIO()
    w = csv.writer(buf)
    w.writerow(["booking_id", "customer", "email", "route", "departure", "seats", "status", "amount_paid"])
    for b in Booking.query.order_by(Booking.created_at.desc()).all():
        w.writerow([b.id, b.customer.name, b.customer.email, b.schedule.route.route_name,
                    _fmt_datetime(b.schedule.departure_time), b.seat_number, b.status, f"{b.amount_paid:.2f}"])
    return Response(buf.getvalue(), mimetype="text/csv",
                    headers={"Content-Disposition": "attachment; filename=bookings.csv"})

# -------------------- ERRORS --------------------
@app.errorhandler(403)
def forbidden(e):
    if wants_json():
        return json_error("Forbidden", 403)
    return render_template("errors/403.html"), 403

@app.errorhandler(404)
def not_found(e):
    if wants_json():
        return json_error("Not found", 404)
    return render_template("errors/404.html"), 404

# -------------------- DB INIT & SEED --------------------
def seed_defaults():
    # Seed a default admin if not present
    if not User.query.filter_by(email="admin@example.com").first():
        admin = User(name="Admin", email="admin@example.com", role="Admin")
        admin.set_password("Admin123!")
        db.session.add(admin)
    db.session.commit()

with app.app_context():
    db.create_all()
    seed_defaults()

if __name__ == "__main__":
    app.run(debug=os.environ.get("BUSPORTAL_DEBUG", "1") == "1")
