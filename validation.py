# validation.py - Form checks shared by the admin and customer pages
#
# Every check raises ValidationError with the message shown to the user.
# Form validators stop at the first failing field and return the cleaned values.

from datetime import date, datetime, time, timedelta

DATE_FORMAT_HINT = "DD-MM-YYYY"
PHONE_DIGITS = 12
MIN_PASSWORD_LENGTH = 6
PAYMENT_MODES = ("Mobile Money", "Card")


class ValidationError(ValueError):
    def __init__(self, message, field=None):
        super().__init__(message)
        self.message = message
        self.field = field


def is_digits(value):
    """ASCII 0-9 only. int() rejects other Unicode digits."""
    return bool(value) and value.isascii() and value.isdigit()


def _value(form, name):
    v = form.get(name)
    return "" if v is None else str(v)


# -------------------- PRIMITIVE CHECKS --------------------
def check_not_empty(value, field_name):
    value = "" if value is None else str(value)
    if value.strip() == "":
        raise ValidationError(f"{field_name} must be filled out", field_name)
    return value.strip()


def _split_date(value):
    """Return (day, month, year) strings for a DD-MM-YYYY value, or None."""
    if len(value) != 10 or value[2] != "-" or value[5] != "-":
        return None
    return value[0:2], value[3:5], value[6:10]


def parse_date(value, field_name):
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{field_name} must be entered and of the format ({DATE_FORMAT_HINT})", field_name)
    parts = _split_date(value)
    if parts is None:
        raise ValidationError(f"{field_name} must be of the format ({DATE_FORMAT_HINT})", field_name)
    if not all(is_digits(p) for p in parts):
        raise ValidationError(f"{field_name} components must be numbers and of the format ({DATE_FORMAT_HINT})", field_name)
    day, month, year = (int(p) for p in parts)
    if not (1 <= day <= 31) or not (1 <= month <= 12) or not (1900 <= year <= 2099):
        raise ValidationError(f"{field_name} contains invalid day, month, or year", field_name)
    if month in (4, 6, 9, 11) and day > 30:
        raise ValidationError(f"{field_name} has too many days for the specified month", field_name)
    if month == 2:
        leap = (year % 4 == 0 and year % 100 != 0) or year % 400 == 0
        if day > (29 if leap else 28):
            raise ValidationError(f"{field_name} has too many days for February", field_name)
    return date(year, month, day)


def check_not_future(given, field_name, today=None):
    today = today or date.today()
    if given > today:
        raise ValidationError(f"Incorrect Date: {field_name} cannot be greater than today", field_name)
    return given


def check_positive_number(value, field_name):
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a positive number", field_name) from None
    if number < 0 or number != number:
        raise ValidationError(f"{field_name} must be a positive number", field_name)
    return number


def check_positive_integer(value, field_name):
    value = str(value or "").strip()
    if not is_digits(value) or int(value) < 1:
        raise ValidationError(f"{field_name} must be a positive whole number", field_name)
    return int(value)


def check_id(value, field_name):
    check_not_empty(value, field_name)
    return check_positive_integer(value, field_name)


def check_email(value):
    value = (value or "").strip()
    if not value or "@" not in value or "." not in value:
        raise ValidationError("Please enter a valid email address", "email")
    return value.lower()


def check_phone_number(value):
    value = (value or "").strip()
    if len(value) != PHONE_DIGITS or not is_digits(value):
        raise ValidationError(
            f"Phone Number must contain exactly {PHONE_DIGITS} digits (e.g., 254719202363)", "phoneNumber")
    return value


def _parse_clock(value, field_name, with_seconds):
    comps = value.split(":")
    allowed = (3,) if with_seconds else (2, 3)
    if len(comps) not in allowed or any(len(c) != 2 for c in comps):
        hint = "HH:MM:SS" if with_seconds else "HH:MM"
        raise ValidationError(f"{field_name} time must be of the format ({hint})", field_name)
    if not all(is_digits(c) for c in comps):
        raise ValidationError(f"{field_name} time components must be valid (HH:MM:SS)", field_name)
    hours, minutes = int(comps[0]), int(comps[1])
    seconds = int(comps[2]) if len(comps) == 3 else 0
    if hours > 23 or minutes > 59 or seconds > 59:
        raise ValidationError(f"{field_name} time components must be valid (HH:MM:SS)", field_name)
    return time(hours, minutes, seconds)


def parse_datetime(value, field_name):
    value = (value or "").strip()
    if not value or " " not in value:
        raise ValidationError(f"{field_name} must be entered and of the format ({DATE_FORMAT_HINT} HH:MM:SS)", field_name)
    date_part, time_part = value.split(" ", 1)
    d = parse_date(date_part, field_name)
    t = _parse_clock(time_part.strip(), field_name, with_seconds=True)
    return datetime.combine(d, t)


def parse_time(value, field_name):
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{field_name} must be filled out", field_name)
    return _parse_clock(value, field_name, with_seconds=False)


def check_selected(value, field_name, choices=None):
    value = (value or "").strip()
    if not value or (choices is not None and value not in choices):
        raise ValidationError(f"Please select a valid option for {field_name}", field_name)
    return value


# -------------------- FORM VALIDATORS --------------------
def validate_bus_form(form, current_year=None):
    current_year = current_year or date.today().year
    cleaned = {
        "busNumber": check_not_empty(_value(form, "busNumber"), "Bus Number"),
        "engineNumber": check_not_empty(_value(form, "engineNumber"), "Engine Number"),
    }
    year = check_not_empty(_value(form, "yearOfManufacture"), "Year of Manufacture")
    check_not_empty(_value(form, "mileage"), "Mileage")
    check_not_empty(_value(form, "capacity"), "Capacity")
    cleaned["status"] = check_selected(_value(form, "status"), "status")
    cleaned["mileage"] = check_positive_number(_value(form, "mileage"), "Mileage")
    if not is_digits(year) or not (1900 <= int(year) <= current_year):
        raise ValidationError(
            f"Please enter a valid Year of Manufacture (between 1900 and {current_year})", "yearOfManufacture")
    cleaned["yearOfManufacture"] = int(year)
    cleaned["capacity"] = check_positive_integer(_value(form, "capacity"), "Capacity")
    return cleaned


def validate_booking_form(form):
    cleaned = {
        "customerID": check_id(_value(form, "customerID"), "Customer ID"),
        "scheduleID": check_id(_value(form, "scheduleID"), "Schedule ID"),
        "seatNumber": check_not_empty(_value(form, "seatNumber"), "Seat Number"),
        "bookingDate": check_not_future(parse_date(_value(form, "bookingDate"), "Booking Date"), "Booking Date"),
        "travelDate": parse_date(_value(form, "travelDate"), "Travel Date"),
    }
    if form.get("status") is not None:
        cleaned["status"] = check_selected(_value(form, "status"), "status")
    return cleaned


def validate_customer_form(form):
    return {
        "name": check_not_empty(_value(form, "name"), "Name"),
        "phoneNumber": check_phone_number(_value(form, "phoneNumber")),
        "passportNumber": check_not_empty(_value(form, "passportNumber"), "Passport Number"),
        "email": check_email(_value(form, "email")),
        "nationality": check_selected(_value(form, "nationality"), "nationality"),
        "gender": check_selected(_value(form, "gender"), "gender"),
    }


def validate_login_form(form):
    return {
        "email": check_email(_value(form, "email")),
        "password": check_not_empty(_value(form, "password"), "Password"),
    }


def validate_forgot_password_form(form):
    return {"email": check_email(_value(form, "email"))}


def validate_reset_password_form(form):
    password = _value(form, "password")
    confirm = _value(form, "confirmPassword")
    check_not_empty(password, "Password")
    check_not_empty(confirm, "Confirm Password")
    if password != confirm:
        raise ValidationError("Passwords do not match", "confirmPassword")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", "password")
    return {"password": password}


def validate_maintenance_form(form):
    cleaned = {
        "busID": check_id(_value(form, "busID"), "Bus ID"),
        "serviceDone": check_not_empty(_value(form, "serviceDone"), "Service Done"),
        "serviceDate": parse_date(_value(form, "serviceDate"), "Service Date"),
    }
    check_not_empty(_value(form, "cost"), "Cost")
    cleaned["cost"] = check_positive_number(_value(form, "cost"), "Cost")
    cleaned["materialUsed"] = check_not_empty(_value(form, "materialUsed"), "Material Used")
    cleaned["lsd"] = parse_date(_value(form, "lsd"), "Last Service Date (LSD)")
    check_not_empty(_value(form, "nsd"), "Next Service Date (NSD)")
    cleaned["nsd"] = parse_date(_value(form, "nsd"), "Next Service Date (NSD)")
    cleaned["technicianID"] = check_id(_value(form, "technicianID"), "Technician ID")
    return cleaned


def validate_payment_form(form):
    cleaned = {
        "bookingID": check_id(_value(form, "bookingID"), "Booking ID"),
        "paymentMode": check_not_empty(_value(form, "paymentMode"), "Payment Mode"),
        "receiptNumber": check_not_empty(_value(form, "receiptNumber"), "Receipt Number"),
        "transactionID": check_not_empty(_value(form, "transactionID"), "Transaction ID"),
    }
    check_not_empty(_value(form, "amountPaid"), "Amount Paid")
    check_not_empty(_value(form, "paymentDate"), "Payment Date")
    cleaned["status"] = check_not_empty(_value(form, "status"), "Status")
    cleaned["amountPaid"] = check_positive_number(_value(form, "amountPaid"), "Amount Paid")
    cleaned["paymentDate"] = parse_datetime(_value(form, "paymentDate"), "Payment Date")
    return cleaned


def validate_route_form(form):
    cleaned = {
        "startLocation": check_not_empty(_value(form, "startLocation"), "Start Location"),
        "destination": check_not_empty(_value(form, "destination"), "Destination"),
        "routeName": check_not_empty(_value(form, "routeName"), "Route Name"),
        "routeType": check_selected(_value(form, "routeType"), "routeType"),
        "security": check_not_empty(_value(form, "security"), "Security"),
    }
    check_not_empty(_value(form, "distance"), "Distance")
    cleaned["distance"] = check_positive_number(_value(form, "distance"), "Distance")
    return cleaned


def validate_schedule_form(form):
    cleaned = {
        "busID": check_id(_value(form, "busID"), "Bus ID"),
        "routeID": check_id(_value(form, "routeID"), "Route ID"),
    }
    check_not_empty(_value(form, "cost"), "Cost")
    cleaned["driverID"] = check_id(_value(form, "driverID"), "Driver ID")
    cleaned["codriverID"] = check_id(_value(form, "codriverID"), "Co-driver ID")
    check_not_empty(_value(form, "departureTime"), "Departure Time")
    check_not_empty(_value(form, "arrivalTime"), "Arrival Time")
    cleaned["cost"] = check_positive_number(_value(form, "cost"), "Cost")
    cleaned["departureTime"] = parse_datetime(_value(form, "departureTime"), "Departure Time")
    cleaned["arrivalTime"] = parse_datetime(_value(form, "arrivalTime"), "Arrival Time")
    if cleaned["arrivalTime"] <= cleaned["departureTime"]:
        raise ValidationError("Arrival Time must be after Departure Time", "arrivalTime")
    return cleaned


def validate_staff_form(form):
    return {
        "name": check_not_empty(_value(form, "name"), "Name"),
        "phoneNumber": check_phone_number(_value(form, "phoneNumber")),
        "staffNumber": check_not_empty(_value(form, "staffNumber"), "Staff Number"),
        "role": check_selected(_value(form, "role"), "role"),
        "email": check_email(_value(form, "email")),
    }


def validate_activity_form(form):
    return {
        "description": check_not_empty(_value(form, "description"), "Description"),
        "whoDidIt": check_not_empty(_value(form, "whoDidIt"), "Who Did It"),
        "role": check_not_empty(_value(form, "role"), "Role"),
        "date": parse_date(_value(form, "date"), "Date"),
        "time": parse_time(_value(form, "time"), "Time"),
    }


def validate_user_form(form, password_required=True):
    cleaned = {"name": check_not_empty(_value(form, "name"), "Name")}
    password = _value(form, "password")
    if password_required or password:
        cleaned["password"] = check_not_empty(password, "Password")
    cleaned["email"] = check_email(_value(form, "email"))
    cleaned["role"] = check_selected(_value(form, "role"), "role")
    cleaned["phoneNumber"] = check_phone_number(_value(form, "phoneNumber"))
    return cleaned


def validate_signup_form(form):
    return {
        "name": check_not_empty(_value(form, "name"), "Name"),
        "password": check_not_empty(_value(form, "password"), "Password"),
        "email": check_email(_value(form, "email")),
        "phoneNumber": check_phone_number(_value(form, "phoneNumber")),
    }


def validate_search_form(form):
    return {
        "from": check_not_empty(_value(form, "from"), "From"),
        "to": check_not_empty(_value(form, "to"), "To"),
        "date": parse_date(_value(form, "date"), "Travel Date"),
    }


def validate_checkout_form(form):
    """Customer payment: Mobile Money needs a phone, Card needs card details."""
    cleaned = {
        "bookingID": check_id(_value(form, "bookingID"), "Booking ID"),
        "paymentMode": check_selected(_value(form, "paymentMode"), "paymentMode", PAYMENT_MODES),
    }
    if cleaned["paymentMode"] == "Mobile Money":
        cleaned["mobileNumber"] = check_phone_number(_value(form, "mobileNumber"))
        return cleaned
    card = _value(form, "cardNumber").replace(" ", "")
    if not is_digits(card) or not 13 <= len(card) <= 19:
        raise ValidationError("Card Number must contain 13 to 19 digits", "cardNumber")
    expiry = _value(form, "expiryDate").strip()
    if len(expiry) != 5 or expiry[2] != "/" or not is_digits(expiry[:2] + expiry[3:]) \
            or not 1 <= int(expiry[:2]) <= 12:
        raise ValidationError("Expiry Date must be of the format (MM/YY)", "expiryDate")
    cvv = _value(form, "cvv").strip()
    if not is_digits(cvv) or len(cvv) not in (3, 4):
        raise ValidationError("CVV must contain 3 or 4 digits", "cvv")
    cleaned["cardLast4"] = card[-4:]
    return cleaned


# -------------------- DATE FORMATS --------------------
def convert_date_format(value):
    """DD-MM-YYYY -> YYYY-MM-DD. Anything else is returned unchanged."""
    parts = _split_date(value or "")
    if parts is None or not all(is_digits(p) for p in parts):
        return value
    day, month, year = parts
    return f"{year}-{month}-{day}"


def convert_to_validation_format(value):
    """YYYY-MM-DD -> DD-MM-YYYY. Anything else is returned unchanged."""
    if not value or len(value) != 10 or value[4] != "-" or value[7] != "-":
        return value
    year, month, day = value[0:4], value[5:7], value[8:10]
    if not is_digits(year + month + day):
        return value
    return f"{day}-{month}-{year}"


def format_date_input(value):
    """Tidy a date typed into a DD-MM-YYYY box: keep digits, insert the dashes."""
    kept = "".join(c for i, c in enumerate(value or "") if is_digits(c) or (c == "-" and i in (2, 5)))
    if len(kept) > 2 and kept[2] != "-" and len(kept) <= 10:
        kept = kept[:2] + "-" + kept[2:]
    if len(kept) > 5 and kept[5] != "-" and len(kept) <= 10:
        kept = kept[:5] + "-" + kept[5:]
    return kept[:10]


def _ddmmyyyy(d):
    return d.strftime("%d-%m-%Y")


def date_range_for_period(period, today=None):
    """Start and end (DD-MM-YYYY) for a report period preset; blanks if unknown."""
    today = today or date.today()
    year = today.year
    if period == "last_month":
        end = today.replace(day=1) - timedelta(days=1)
        return _ddmmyyyy(end.replace(day=1)), _ddmmyyyy(end)
    if period == "last_year":
        return f"01-01-{year - 1}", f"31-12-{year - 1}"
    quarters = {
        "q1": ("01-01", "31-03"),
        "q2": ("01-04", "30-06"),
        "q3": ("01-07", "30-09"),
        "q4": ("01-10", "31-12"),
    }
    if period in quarters:
        start, end = quarters[period]
        return f"{start}-{year}", f"{end}-{year}"
    return "", ""
