"""
Admin back office tests: JSON API, HTML pages, reports and staff dashboards
"""

from datetime import date, timedelta

from conftest import login

import app as portal

BUS = {"busNumber": "KBZ 900Z", "engineNumber": "ENG900", "yearOfManufacture": "2019",
       "mileage": "5000", "capacity": "37", "status": "Active"}


def booking_payload(customer_id, schedule_id, seats, status="Confirmed"):
    return {"customerID": customer_id, "scheduleID": schedule_id, "seatNumber": seats,
            "bookingDate": "2025-01-10", "travelDate": "2025-01-12", "status": status}


def make_user(app, email, role, password="secret1"):
    with app.app_context():
        user = portal.User(name=f"{role} user", email=email, phone_number="254700000009", role=role)
        user.set_password(password)
        portal.db.session.add(user)
        portal.db.session.commit()


# -------------------- RESOURCE API --------------------
def test_create_and_list_bus(admin_client):
    resp = admin_client.post("/api/admin/buses", json=BUS)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["status"] == "success"
    assert body["data"]["BusNumber"] == "KBZ 900Z"
    assert body["data"]["YearOfManufacture"] == 2019

    listed = admin_client.get("/api/admin/buses").get_json()["data"]
    assert [b["BusNumber"] for b in listed] == ["KBZ 900Z"]


def test_invalid_bus_is_rejected(admin_client, app):
    resp = admin_client.post("/api/admin/buses", json=dict(BUS, yearOfManufacture="1800"))
    assert resp.status_code == 400
    assert resp.get_json()["message"].startswith("Please enter a valid Year of Manufacture")
    resp = admin_client.post("/api/admin/buses", json=dict(BUS, status="Flying"))
    assert resp.get_json()["message"] == "Please select a valid option for Status"
    with app.app_context():
        assert portal.Bus.query.count() == 0


def test_superscript_digit_is_a_validation_error(admin_client):
    resp = admin_client.post("/api/admin/buses", json=dict(BUS, capacity="²"))
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Capacity must be a positive whole number"


def test_json_list_body_is_treated_as_empty_form(admin_client):
    resp = admin_client.post("/api/admin/buses", json=["KBZ 900Z"])
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Bus Number must be filled out"


def test_duplicate_bus_number(admin_client):
    assert admin_client.post("/api/admin/buses", json=BUS).status_code == 201
    resp = admin_client.post("/api/admin/buses", json=BUS)
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "A record with the same unique value already exists."


def test_update_and_delete_bus(admin_client, app):
    bus_id = admin_client.post("/api/admin/buses", json=BUS).get_json()["data"]["BusID"]
    resp = admin_client.put(f"/api/admin/buses/{bus_id}", json=dict(BUS, status="Under Maintenance"))
    assert resp.get_json()["data"]["Status"] == "Under Maintenance"
    resp = admin_client.delete(f"/api/admin/buses/{bus_id}")
    assert resp.get_json() == {"status": "success", "message": "Buses record deleted"}
    assert admin_client.get(f"/api/admin/buses/{bus_id}").status_code == 404


def test_bus_in_use_cannot_be_deleted(admin_client, make_schedule, app):
    sid = make_schedule()
    with app.app_context():
        bus_id = portal.db.session.get(portal.Schedule, sid).bus_id
    resp = admin_client.delete(f"/api/admin/buses/{bus_id}")
    assert resp.status_code == 409


def test_route_validation_message(admin_client):
    resp = admin_client.post("/api/admin/routes", json={"destination": "Kampala"})
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Start Location must be filled out"


def test_schedule_needs_existing_bus(admin_client):
    resp = admin_client.post("/api/admin/schedules", json={
        "busID": 99, "routeID": 1, "cost": 1500, "driverID": 1, "codriverID": 2,
        "departureTime": "2025-05-01 08:00:00", "arrivalTime": "2025-05-01 20:00:00"})
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Bus ID 99 does not exist"


def test_user_password_kept_when_blank(admin_client, app):
    resp = admin_client.post("/api/admin/users", json={"name": "Sam", "email": "sam@example.com", "role": "Driver",
                                                       "phoneNumber": "254700000001", "password": "secret1"})
    user_id = resp.get_json()["data"]["UserID"]
    resp = admin_client.put(f"/api/admin/users/{user_id}", json={"name": "Sam O", "email": "sam@example.com",
                                                                 "role": "Driver", "phoneNumber": "254700000001"})
    assert resp.status_code == 200
    other = app.test_client()
    assert login(other, "sam@example.com", "secret1").headers["Location"].endswith("/driver")


# -------------------- BOOKINGS --------------------
def test_admin_booking_seats_are_exclusive(admin_client, make_schedule, make_customer):
    sid = make_schedule()
    cid = make_customer()
    resp = admin_client.post("/api/admin/bookings", json=booking_payload(cid, sid, "1A,1B"))
    assert resp.status_code == 201
    assert resp.get_json()["data"]["BookingDate"] == "2025-01-10"

    resp = admin_client.post("/api/admin/bookings", json=booking_payload(cid, sid, "1B,2A"))
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Seat(s) already booked: 1B"

    resp = admin_client.post("/api/admin/bookings", json=booking_payload(cid, sid, "1Z"))
    assert resp.get_json()["message"] == "Unknown seat(s): 1Z"


def test_admin_moves_booking_seats(admin_client, make_schedule, make_customer, app):
    sid = make_schedule()
    cid = make_customer()
    booking_id = admin_client.post("/api/admin/bookings", json=booking_payload(cid, sid, "1A,1B")) \
        .get_json()["data"]["BookingID"]
    resp = admin_client.put(f"/api/admin/bookings/{booking_id}", json=booking_payload(cid, sid, "1A,2C"))
    assert resp.status_code == 200
    data = admin_client.get(f"/api/schedules/{sid}/booked-seats").get_json()
    assert data["bookedSeats"] == ["1A,2C"]
    with app.app_context():
        assert sorted(s.label for s in portal.BookingSeat.query.all()) == ["1A", "2C"]


def test_admin_cancel_booking(admin_client, make_schedule, make_customer, app):
    sid = make_schedule()
    cid = make_customer()
    booking_id = admin_client.post("/api/admin/bookings", json=booking_payload(cid, sid, "4A")) \
        .get_json()["data"]["BookingID"]
    resp = admin_client.post(f"/api/admin/bookings/{booking_id}/cancel")
    assert resp.get_json()["data"]["Status"] == "Cancelled"
    assert admin_client.post(f"/api/admin/bookings/{booking_id}/cancel").status_code == 409
    with app.app_context():
        assert portal.BookingSeat.query.count() == 0


# -------------------- HTML PAGES --------------------
def test_admin_pages(admin_client, make_schedule):
    make_schedule()
    assert admin_client.get("/admin").status_code == 200
    for name in portal.RESOURCES:
        assert admin_client.get(f"/admin/{name}").status_code == 200
        assert admin_client.get(f"/admin/{name}/new").status_code == 200
    assert admin_client.get("/admin/schedules/1/edit").status_code == 200
    assert admin_client.get("/admin/nothing").status_code == 404


def test_admin_form_create_and_delete(admin_client, app):
    resp = admin_client.post("/admin/buses/new", data=BUS)
    assert resp.headers["Location"].endswith("/admin/buses")
    page = admin_client.get("/admin/buses")
    assert b"KBZ 900Z" in page.data
    with app.app_context():
        bus_id = portal.Bus.query.one().id
    edit = admin_client.get(f"/admin/buses/{bus_id}/edit")
    assert b"value='KBZ 900Z'" in edit.data
    assert admin_client.get(f"/admin/buses/{bus_id}/delete").status_code == 200
    admin_client.post(f"/admin/buses/{bus_id}/delete")
    with app.app_context():
        assert portal.Bus.query.count() == 0


def test_admin_form_shows_validation_error(admin_client):
    resp = admin_client.post("/admin/buses/new", data=dict(BUS, capacity="0"))
    assert resp.status_code == 200
    assert b"Capacity must be a positive whole number" in resp.data


# -------------------- REPORTS --------------------
def seed_paid_booking(admin_client, make_schedule, make_customer):
    sid = make_schedule()
    cid = make_customer()
    booking_id = admin_client.post("/api/admin/bookings", json=booking_payload(cid, sid, "1A,1B")) \
        .get_json()["data"]["BookingID"]
    resp = admin_client.post("/api/admin/payments", json={
        "bookingID": booking_id, "amountPaid": 3000, "paymentMode": "Mobile Money",
        "paymentDate": "2025-01-10 10:00:00", "receiptNumber": "RC00000001", "transactionID": "TX00000001",
        "status": "Completed"})
    assert resp.status_code == 201
    return booking_id


def test_revenue_report(admin_client, make_schedule, make_customer):
    seed_paid_booking(admin_client, make_schedule, make_customer)
    data = admin_client.get("/api/admin/reports/revenue").get_json()["data"]
    assert data["summary"] == [{"PaymentDate": "2025-01-10", "TotalRevenue": 3000.0}]
    assert data["byPaymentMode"] == [{"PaymentMode": "Mobile Money", "TotalRevenue": 3000.0}]
    assert data["byNationality"] == [{"Nationality": "Kenyan", "TotalRevenue": 3000.0}]
    assert data["byRoute"][0]["TotalRevenue"] == 3000.0

    data = admin_client.get("/api/admin/reports/revenue",
                            query_string={"start": "2025-02-01", "end": "2025-02-28"}).get_json()["data"]
    assert data["summary"] == []


def test_booking_reports(admin_client, make_schedule, make_customer):
    seed_paid_booking(admin_client, make_schedule, make_customer)
    status = admin_client.get("/api/admin/reports/booking-status").get_json()["data"]
    assert status == [{"Status": "Confirmed", "Count": 1}]
    summary = admin_client.get("/api/admin/reports/booking-summary",
                               query_string={"start": "01-01-2025", "end": "31-01-2025"}).get_json()["data"]
    assert summary == [{"BookingDate": "2025-01-10", "Bookings": 1, "SeatsBooked": 2}]
    usage = admin_client.get("/api/admin/reports/system-usage").get_json()["data"]
    assert usage["TotalBookings"] == 1
    assert usage["ActiveCustomers"] == 1
    popular = admin_client.get("/api/admin/reports/route-popularity").get_json()["data"]
    assert popular[0]["Bookings"] == 1
    drivers = admin_client.get("/api/admin/reports/drivers-activity").get_json()["data"]
    assert {d["TripsAssigned"] for d in drivers} == {1}
    buses = admin_client.get("/api/admin/reports/bus-utilization").get_json()["data"]
    assert buses[0]["SeatsBooked"] == 2


def test_report_range_errors(admin_client):
    resp = admin_client.get("/api/admin/reports/revenue", query_string={"start": "2025-13-01", "end": "2025-01-31"})
    assert resp.status_code == 400
    resp = admin_client.get("/api/admin/reports/revenue", query_string={"start": "2025-02-01", "end": "2025-01-01"})
    assert resp.get_json()["message"] == "Start Date cannot be after End Date"
    assert admin_client.get("/api/admin/reports/nothing").status_code == 404


def test_activity_log_records_logins(admin_client):
    rows = admin_client.get("/api/admin/reports/user-activity").get_json()["data"]
    assert rows[0]["Description"] == "User logged in"
    assert rows[0]["Role"] == "Admin"


def test_activity_entry_through_admin(admin_client):
    resp = admin_client.post("/api/admin/activity", json={"description": "Depot audit", "whoDidIt": "Admin",
                                                          "role": "Admin", "date": "2025-03-15", "time": "08:05"})
    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert (data["Date"], data["Time"]) == ("2025-03-15", "08:05:00")
    resp = admin_client.put(f"/api/admin/activity/{data['ActivityID']}",
                            json={"description": "Depot audit", "whoDidIt": "Admin", "role": "Admin",
                                  "date": "16-03-2025", "time": "09:30"})
    assert resp.get_json()["data"]["Date"] == "2025-03-16"
    assert resp.get_json()["data"]["Time"] == "09:30:00"
    resp = admin_client.post("/api/admin/activity", json={"description": "x", "whoDidIt": "Admin",
                                                          "role": "Admin", "date": "15-03-2025", "time": "8:05"})
    assert resp.status_code == 400
    assert "HH:MM" in resp.get_json()["message"]


def test_reports_page_links_json_with_iso_dates(admin_client):
    page = admin_client.get("/admin/reports", query_string={"start": "01-01-2025", "end": "31-01-2025"})
    assert b"/api/admin/reports/revenue?start=2025-01-01&amp;end=2025-01-31" in page.data


def test_reports_page_and_csv(admin_client, make_schedule, make_customer):
    seed_paid_booking(admin_client, make_schedule, make_customer)
    assert admin_client.get("/admin/reports").status_code == 200
    assert admin_client.get("/admin/reports", query_string={"period": "q1"}).status_code == 200
    resp = admin_client.get("/admin/reports.csv")
    assert resp.mimetype == "text/csv"
    lines = resp.data.decode().splitlines()
    assert lines[0].startswith("booking_id,customer")
    assert "Jane Doe" in lines[1]


# -------------------- STAFF DASHBOARDS --------------------
def test_driver_sees_assigned_trips(client, app, make_schedule):
    sid = make_schedule(start="Nairobi", destination="Dar es Salaam")
    other_sid = make_schedule(start="Kampala", destination="Kigali")
    make_user(app, "driver1@example.com", "Driver")
    assert login(client, "driver1@example.com", "secret1").headers["Location"].endswith("/driver")
    page = client.get("/driver")
    assert b"Nairobi - Dar es Salaam" in page.data
    assert b"Kampala - Kigali" not in page.data
    assert client.get(f"/driver/schedules/{sid}/passengers").status_code == 200
    assert client.get(f"/driver/schedules/{other_sid}/passengers").status_code == 403


def test_technician_and_cashier_dashboards(app, make_schedule):
    make_schedule()
    make_user(app, "tech@example.com", "Technician")
    make_user(app, "cash@example.com", "Cashier")
    tech = app.test_client()
    assert login(tech, "tech@example.com", "secret1").headers["Location"].endswith("/technician")
    assert tech.get("/technician").status_code == 200
    assert tech.get("/staff").status_code == 403
    cash = app.test_client()
    assert login(cash, "cash@example.com", "secret1").headers["Location"].endswith("/staff")
    assert cash.get("/staff").status_code == 200


def make_staff(app, email, role, name="Tom Tech", staff_number="TEC-1"):
    with app.app_context():
        staff = portal.Staff(name=name, phone_number="254700000009", email=email,
                             staff_number=staff_number, role=role)
        portal.db.session.add(staff)
        portal.db.session.commit()
        return staff.id


def test_staff_profile_edit_updates_staff_record(app):
    make_user(app, "tech@example.com", "Technician")
    make_staff(app, "tech@example.com", "Technician")
    tech = app.test_client()
    login(tech, "tech@example.com", "secret1")
    resp = tech.post("/profile", data={"name": "Thomas Tech", "phoneNumber": "254711111111"})
    assert resp.status_code == 302
    with app.app_context():
        staff = portal.Staff.query.filter_by(email="tech@example.com").one()
        assert (staff.name, staff.phone_number) == ("Thomas Tech", "254711111111")
        assert portal.User.query.filter_by(email="tech@example.com").one().name == "Thomas Tech"


def test_maintenance_status_rule():
    today = date(2025, 3, 15)
    assert portal.maintenance_status(date(2025, 3, 14), today) == "Overdue"
    assert portal.maintenance_status(date(2025, 3, 15), today) == "Ready"
    assert portal.maintenance_status(None, today) == "Ready"


def test_technician_stats_and_bus_status(app, make_schedule):
    sid = make_schedule()
    make_user(app, "tech@example.com", "Technician")
    tech_id = make_staff(app, "tech@example.com", "Technician")
    today = date.today()
    with app.app_context():
        bus_id = portal.db.session.get(portal.Schedule, sid).bus_id
        portal.db.session.add_all([
            portal.Maintenance(bus_id=bus_id, service_done="Oil change", service_date=today - timedelta(days=5),
                               cost=2500, material_used="Oil", nsd=today - timedelta(days=1), technician_id=tech_id),
            portal.Maintenance(bus_id=bus_id, service_done="Brakes", service_date=today - timedelta(days=60),
                               cost=1500, material_used="Pads", nsd=today + timedelta(days=30), technician_id=tech_id),
        ])
        portal.db.session.commit()
    tech = app.test_client()
    login(tech, "tech@example.com", "secret1")
    body = tech.get("/api/technician").get_json()
    assert body["stats"] == {"totalTasks": 2, "totalCost": 4000.0, "busesServiced": 1, "recentServices": 1}
    [status] = body["busStatus"]
    assert status["RouteName"] == "Nairobi - Kampala"
    assert status["MaintenanceStatus"] == "Overdue"
    assert b"Overdue" in tech.get("/technician").data


def test_technician_without_staff_record(app):
    make_user(app, "tech@example.com", "Technician")
    tech = app.test_client()
    login(tech, "tech@example.com", "secret1")
    assert tech.get("/api/technician").get_json() == {"status": "no_staff"}
