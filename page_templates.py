# page_templates.py - Built-in Jinja pages for app.py (served through a DictLoader)

BASE = """<!doctype html><html><head>
<meta name=viewport content="width=device-width, initial-scale=1">
<link rel="stylesheet" href="https://cdn.jsdelivr.net/npm/bootstrap@5.3.3/dist/css/bootstrap.min.css">
<title>{% block title %}International Bus Booking{% endblock %}</title>
<style>
.seat-map{display:inline-block;padding:12px;border:2px solid #333;border-radius:12px;background:#fff}
.seat-row{display:flex;gap:6px;margin-bottom:6px}
.seat-row>div{width:44px;height:40px;display:flex;align-items:center;justify-content:center;border-radius:6px;font-size:.8rem}
.seat{background:#d1e7dd;cursor:pointer;border:1px solid #198754}
.seat.selected{background:#0d6efd;color:#fff}
.seat.booked{background:#adb5bd;color:#fff;cursor:not-allowed;border-color:#6c757d}
.walkway,.empty-space{background:transparent}
.door,.driver-seat{background:#343a40;color:#fff}
</style>
</head><body class="bg-light">
<nav class="navbar navbar-expand-lg navbar-dark bg-dark"><div class="container"><a class="navbar-brand" href="/">IBB</a>
<div class="d-flex">
  {% if current_user.is_authenticated %}
    {% if current_user.role == 'Customer' %}
      <a class="btn btn-sm btn-outline-light me-2" href="{{ url_for('search_buses') }}">Search</a>
      <a class="btn btn-sm btn-outline-light me-2" href="{{ url_for('my_bookings') }}">My Bookings</a>
      <a class="btn btn-sm btn-outline-light me-2" href="{{ url_for('payment_history') }}">Payments</a>
    {% endif %}
    {% if current_user.role == 'Admin' %}
      <a class="btn btn-sm btn-warning me-2" href="{{ url_for('admin_dashboard') }}">Admin</a>
      <a class="btn btn-sm btn-outline-warning me-2" href="{{ url_for('admin_reports') }}">Reports</a>
    {% endif %}
    <a class="btn btn-sm btn-outline-light me-2" href="{{ url_for('profile') }}">{{ current_user.name }}</a>
    <a class="btn btn-sm btn-danger" href="{{ url_for('logout') }}">Logout</a>
  {% else %}
    <a class="btn btn-sm btn-outline-light" href="{{ url_for('login') }}">Login</a>
  {% endif %}
</div></div></nav>
<main class="container py-4">
{% with messages = get_flashed_messages(with_categories=true) %}
  {% for c,m in messages %}<div class="alert alert-{{c}}">{{m}}</div>{% endfor %}
{% endwith %}
{% block content %}{% endblock %}
</main></body></html>"""

TPLS = {
"login.html": """{% extends 'base.html' %}{% block title %}Login{% endblock %}{% block content %}
<div class='row justify-content-center'><div class='col-md-4'>
<form method=post class='card p-4'>
<h4 class='mb-3'>Login</h4>
<input class='form-control mb-2' name=email type=email placeholder='Email' required>
<input class='form-control mb-2' name=password type=password placeholder='Password' required>
<label class='form-label small'>What is {{ captcha }}?</label>
<input class='form-control mb-3' name=captcha autocomplete=off required>
<button class='btn btn-primary w-100'>Login</button>
<div class='text-center mt-3'><a href='{{ url_for('signup') }}'>Sign up</a> · <a href='{{ url_for('forgot_password') }}'>Forgot?</a></div>
</form></div></div>{% endblock %}""",

"signup.html": """{% extends 'base.html' %}{% block title %}Sign up{% endblock %}{% block content %}
<div class='row justify-content-center'><div class='col-md-5'>
<form method=post class='card p-4'>
<h4>Create Account</h4>
<input class='form-control mb-2' name=name placeholder='Full name' required>
<input class='form-control mb-2' name=email type=email placeholder='Email' required>
<input class='form-control mb-2' name=phoneNumber placeholder='Phone (e.g. 254719202363)' required>
<input class='form-control mb-3' name=password type=password placeholder='Password' required>
<button class='btn btn-success w-100'>Create</button>
</form></div></div>{% endblock %}""",

"forgot.html": """{% extends 'base.html' %}{% block title %}Forgot Password{% endblock %}{% block content %}
<form method=post class='card p-4 mx-auto' style='max-width:420px'>
<p>Enter your account email. We'll send a reset link if it exists.</p>
<input class='form-control mb-3' type=email name=email placeholder='Email'>
<button class='btn btn-primary w-100'>Send</button>
</form>{% endblock %}""",

"reset.html": """{% extends 'base.html' %}{% block title %}Reset Password{% endblock %}{% block content %}
<form method=post class='card p-4 mx-auto' style='max-width:420px'>
<h4>Choose a new password</h4>
<input class='form-control mb-2' type=password name=password placeholder='New password'>
<input class='form-control mb-3' type=password name=confirmPassword placeholder='Confirm password'>
<button class='btn btn-primary w-100'>Update</button>
</form>{% endblock %}""",

"dashboard.html": """{% extends 'base.html' %}{% block title %}Dashboard{% endblock %}{% block content %}
<div class='row mb-4'>
  <div class='col'><div class='card p-3'><small>Total bookings</small><h4>{{ stats.totalBookings }}</h4></div></div>
  <div class='col'><div class='card p-3'><small>Total spent</small><h4>{{ '%.2f'|format(stats.totalSpent) }}</h4></div></div>
  <div class='col'><div class='card p-3'><small>Upcoming trips</small><h4>{{ stats.upcomingTrips }}</h4></div></div>
</div>
<h3>Departures this week</h3>
<table class='table table-striped'><thead><tr><th>Route</th><th>Departure</th><th>Arrival</th><th>Bus</th><th>Cost</th><th>Seats left</th><th>Status</th><th></th></tr></thead><tbody>
{% for row in schedules %}{% set s = row.schedule %}
<tr><td>{{ s.route.start_location }} → {{ s.route.destination }}</td><td>{{ s.departure_time|dmy }}</td><td>{{ s.arrival_time|dmy }}</td>
<td>{{ s.bus.bus_number }}</td><td>{{ '%.2f'|format(s.cost) }}</td><td>{{ row.seats_left }}</td><td>{{ row.status }}</td>
<td>{% if row.status == 'Available' %}<a class='btn btn-sm btn-outline-primary' href='{{ url_for('seat_selection', schedule_id=s.id) }}'>Select seats</a>{% endif %}</td></tr>
{% else %}<tr><td colspan=8 class='text-muted'>No departures in the next days.</td></tr>
{% endfor %}
</tbody></table>
{% endblock %}""",

"search.html": """{% extends 'base.html' %}{% block title %}Search Buses{% endblock %}{% block content %}
<form class='row g-2 mb-3'>
<div class='col-auto'><input class='form-control' name=from list=locations placeholder='From' value='{{ request.args.get('from','') }}'></div>
<div class='col-auto'><input class='form-control' name=to list=locations placeholder='To' value='{{ request.args.get('to','') }}'></div>
<div class='col-auto'><input class='form-control' name=date placeholder='DD-MM-YYYY' value='{{ request.args.get('date','') }}'></div>
<div class='col-auto'><button class='btn btn-secondary'>Search</button></div>
<datalist id=locations>{% for l in locations %}<option value='{{ l }}'>{% endfor %}</datalist>
</form>
{% if results is not none %}
<table class='table table-hover'><thead><tr><th>Route</th><th>Departure</th><th>Arrival</th><th>Bus</th><th>Cost</th><th></th></tr></thead><tbody>
{% for s in results %}
<tr><td>{{ s.route.route_name }}</td><td>{{ s.departure_time|dmy }}</td><td>{{ s.arrival_time|dmy }}</td><td>{{ s.bus.bus_number }}</td><td>{{ '%.2f'|format(s.cost) }}</td>
<td><a class='btn btn-sm btn-outline-primary' href='{{ url_for('seat_selection', schedule_id=s.id) }}'>Select seats</a></td></tr>
{% else %}<tr><td colspan=6 class='text-muted'>No buses found for this trip.</td></tr>
{% endfor %}
</tbody></table>
{% endif %}
{% endblock %}""",

"seats.html": """{% extends 'base.html' %}{% block title %}Select Seats{% endblock %}{% block content %}
<h3>{{ schedule.route.start_location }} → {{ schedule.route.destination }}</h3>
<p>Departs {{ schedule.departure_time|dmy }} · Bus {{ schedule.bus.bus_number }} · {{ '%.2f'|format(schedule.cost) }} per seat · up to {{ max_seats }} seats</p>
<div id='seatNotice' class='alert alert-warning d-none' role='alert'></div>
<div class='seat-map mb-3'>
{% for row in layout %}<div class='seat-row'>
  {% for cell in row %}
    {% if cell.kind == 'seat' %}<div class='seat {{ 'booked' if cell.booked else 'available' }}' data-seat='{{ cell.label }}'>{{ cell.label }}</div>
    {% else %}<div class='{{ cell.kind }}'>{{ cell.label or '' }}</div>{% endif %}
  {% endfor %}
</div>{% endfor %}
</div>
<form id='seatForm' method=post action='{{ url_for('confirm_seats', schedule_id=schedule.id) }}'>
<input type=hidden name=scheduleID value='{{ schedule.id }}'>
<input type=hidden id=seatNumbers name=seatNumbers value='{{ selection.field_value }}'>
<button id='seatSubmit' class='btn btn-primary' {% if selection.submit_disabled %}disabled{% endif %}>{{ selection.submit_label }}</button>
</form>
<script>
(function () {
  const toggleUrl = '{{ url_for('api_toggle_seat', schedule_id=schedule.id) }}';
  const notice = document.getElementById('seatNotice');
  const field = document.getElementById('seatNumbers');
  const submit = document.getElementById('seatSubmit');
  function show(state) {
    document.querySelectorAll('[data-seat]').forEach(function (el) {
      el.classList.toggle('selected', state.selectedSeats.indexOf(el.dataset.seat) !== -1);
    });
    field.value = state.seatNumbers;
    submit.disabled = state.submitDisabled;
    submit.textContent = state.submitLabel;
  }
  document.querySelectorAll('[data-seat]').forEach(function (el) {
    el.addEventListener('click', function () {
      fetch(toggleUrl, {method: 'POST', headers: {'Content-Type': 'application/json'},
                        body: JSON.stringify({seat: el.dataset.seat})})
        .then(function (res) { return res.json().then(function (data) { return [res.status, data]; }); })
        .then(function (out) {
          const status = out[0], data = out[1];
          if (status === 409) { el.classList.replace('available', 'booked'); }
          if (data.status === 'error') {
            notice.textContent = data.message;
            notice.classList.remove('d-none');
          } else {
            notice.classList.add('d-none');
          }
          if (data.selectedSeats) { show(data); }
        });
    });
  });
})();
</script>
{% endblock %}""",

"seat_confirm.html": """{% extends 'base.html' %}{% block title %}Confirm Seats{% endblock %}{% block content %}
<div class='card p-4 mx-auto' style='max-width:520px'>
<h4>Confirm your seats</h4>
<p>{{ message }}</p>
<p>{{ schedule.route.start_location }} → {{ schedule.route.destination }}, {{ schedule.departure_time|dmy }}</p>
<p>Total: <b>{{ '%.2f'|format(total) }}</b></p>
<form method=post action='{{ url_for('book_seats', schedule_id=schedule.id) }}' class='d-inline'>
<input type=hidden name=seatNumbers value='{{ selection.field_value }}'>
<button class='btn btn-primary'>Yes, proceed</button>
</form>
<a class='btn btn-outline-secondary' href='{{ url_for('seat_selection', schedule_id=schedule.id) }}'>No, go back</a>
</div>
{% endblock %}""",

"payment.html": """{% extends 'base.html' %}{% block title %}Payment{% endblock %}{% block content %}
<div class='card p-4 mx-auto' style='max-width:520px'>
<h4>Pay for booking #{{ b.id }}</h4>
<p>Seats {{ b.seat_number }} · {{ b.schedule.route.route_name }} · {{ b.schedule.departure_time|dmy }}</p>
<p>Amount due: <b>{{ '%.2f'|format(b.amount_due) }}</b></p>
<form method=post>
<select class='form-select mb-2' name=paymentMode>
  <option value='Mobile Money'>Mobile Money</option><option value='Card'>Card</option>
</select>
<input class='form-control mb-2' name=mobileNumber placeholder='Mobile number (Mobile Money)'>
<input class='form-control mb-2' name=cardNumber placeholder='Card number (Card)'>
<div class='row g-2 mb-3'>
  <div class='col'><input class='form-control' name=expiryDate placeholder='MM/YY'></div>
  <div class='col'><input class='form-control' name=cvv placeholder='CVV'></div>
</div>
<button class='btn btn-success w-100'>Pay {{ '%.2f'|format(b.amount_due) }}</button>
</form></div>
{% endblock %}""",

"my_bookings.html": """{% extends 'base.html' %}{% block title %}My Bookings{% endblock %}{% block content %}
{% macro rows(bookings, cancellable) %}
<table class='table'><thead><tr><th>#</th><th>Route</th><th>Departure</th><th>Seats</th><th>Status</th><th></th></tr></thead><tbody>
{% for b in bookings %}
<tr><td>{{ b.id }}</td><td>{{ b.schedule.route.route_name }}</td><td>{{ b.schedule.departure_time|dmy }}</td><td>{{ b.seat_number }}</td><td>{{ b.status }}</td>
<td><a class='btn btn-sm btn-outline-secondary' href='{{ url_for('booking_detail', booking_id=b.id) }}'>Ticket</a>
{% if b.status == 'Pending' %}<a class='btn btn-sm btn-success' href='{{ url_for('payment', booking_id=b.id) }}'>Pay</a>{% endif %}
{% if cancellable %}<a class='btn btn-sm btn-outline-danger' href='{{ url_for('booking_cancel', booking_id=b.id) }}'>Cancel</a>{% endif %}</td></tr>
{% else %}<tr><td colspan=6 class='text-muted'>None.</td></tr>
{% endfor %}
</tbody></table>
{% endmacro %}
<h3>Upcoming trips</h3>
{{ rows(upcoming, true) }}
<p class='text-muted'>Cancellation cutoff: {{ cutoff }} minutes before departure.</p>
<h3>Past and cancelled</h3>
{{ rows(past, false) }}
{% endblock %}""",

"booking_detail.html": """{% extends 'base.html' %}{% block title %}Ticket{% endblock %}{% block content %}
<div class='card p-4 mx-auto' style='max-width:560px'>
<h3>Ticket #{{ b.id }}</h3>
<p>Passenger: <b>{{ b.customer.name }}</b>{% if b.customer.passport_number %} · Passport {{ b.customer.passport_number }}{% endif %}</p>
<p>Route: <b>{{ b.schedule.route.start_location }} → {{ b.schedule.route.destination }}</b> ({{ b.schedule.route.route_name }})</p>
<p>Departure: {{ b.schedule.departure_time|dmy }} · Arrival: {{ b.schedule.arrival_time|dmy }}</p>
<p>Bus: {{ b.schedule.bus.bus_number }} · Seats: <b>{{ b.seat_number }}</b></p>
<p>Status: <span class='badge bg-{{ 'success' if b.status=='Confirmed' else ('secondary' if b.status=='Cancelled' else 'warning') }}'>{{ b.status }}</span></p>
<p>Amount due: {{ '%.2f'|format(b.amount_due) }} · Paid: {{ '%.2f'|format(b.amount_paid) }}</p>
{% for p in b.payments %}<p class='small text-muted'>Receipt {{ p.receipt_number }} · {{ p.payment_mode }} · {{ p.payment_date|dmy }}</p>{% endfor %}
</div>
{% endblock %}""",

"confirm.html": """{% extends 'base.html' %}{% block title %}{{ title }}{% endblock %}{% block content %}
<div class='card p-4 mx-auto' style='max-width:520px'>
<h4>{{ title }}</h4>
<p>{{ message }}</p>
<form method=post action='{{ action }}' class='d-inline'><button class='btn btn-danger'>Yes</button></form>
<a class='btn btn-outline-secondary' href='{{ back }}'>No</a>
</div>
{% endblock %}""",

"payments.html": """{% extends 'base.html' %}{% block title %}Payment History{% endblock %}{% block content %}
<h3>Payment history</h3>
<table class='table'><thead><tr><th>Receipt</th><th>Booking</th><th>Amount</th><th>Mode</th><th>Date</th><th>Status</th></tr></thead><tbody>
{% for p in payments %}
<tr><td>{{ p.receipt_number }}</td><td><a href='{{ url_for('booking_detail', booking_id=p.booking_id) }}'>#{{ p.booking_id }}</a></td>
<td>{{ '%.2f'|format(p.amount_paid) }}</td><td>{{ p.payment_mode }}</td><td>{{ p.payment_date|dmy }}</td><td>{{ p.status }}</td></tr>
{% else %}<tr><td colspan=6 class='text-muted'>No payments yet.</td></tr>
{% endfor %}
</tbody></table>
{% endblock %}""",

"profile.html": """{% extends 'base.html' %}{% block title %}Profile{% endblock %}{% block content %}
<form method=post class='card p-4 mx-auto' style='max-width:520px'>
<h4>Profile</h4>
<p class='text-muted'>{{ current_user.email }} · {{ current_user.role }}</p>
<input class='form-control mb-2' name=name value='{{ current_user.name }}' placeholder='Name'>
<input class='form-control mb-2' name=phoneNumber value='{{ current_user.phone_number or '' }}' placeholder='Phone'>
{% if customer %}
<input class='form-control mb-2' name=passportNumber value='{{ customer.passport_number or '' }}' placeholder='Passport number'>
<select class='form-select mb-2' name=nationality><option value=''>Nationality</option>
{% for n in nationalities %}<option {% if customer.nationality == n %}selected{% endif %}>{{ n }}</option>{% endfor %}</select>
<div class='mb-2'>{% for g in genders %}
<label class='me-3'><input type=radio name=gender value='{{ g }}' {% if customer.gender == g %}checked{% endif %}> {{ g }}</label>{% endfor %}</div>
{% endif %}
<input class='form-control mb-2' type=password name=password placeholder='New password (optional)'>
<input class='form-control mb-3' type=password name=confirmPassword placeholder='Confirm new password'>
<button class='btn btn-primary w-100'>Save</button>
</form>
{% endblock %}""",

"driver.html": """{% extends 'base.html' %}{% block title %}My Trips{% endblock %}{% block content %}
<h3>My trips</h3>
{% if not staff %}<p class='text-muted'>No staff record is linked to your account.</p>{% endif %}
<table class='table'><thead><tr><th>#</th><th>Route</th><th>Departure</th><th>Arrival</th><th>Bus</th><th></th></tr></thead><tbody>
{% for s in schedules %}
<tr><td>{{ s.id }}</td><td>{{ s.route.route_name }}</td><td>{{ s.departure_time|dmy }}</td><td>{{ s.arrival_time|dmy }}</td><td>{{ s.bus.bus_number }}</td>
<td><a class='btn btn-sm btn-outline-primary' href='{{ url_for('schedule_passengers', schedule_id=s.id) }}'>Passengers</a></td></tr>
{% else %}<tr><td colspan=6 class='text-muted'>No trips assigned.</td></tr>
{% endfor %}
</tbody></table>
{% endblock %}""",

"passengers.html": """{% extends 'base.html' %}{% block title %}Passengers{% endblock %}{% block content %}
<h3>Passengers · {{ schedule.route.route_name }} · {{ schedule.departure_time|dmy }}</h3>
<table class='table table-sm'><thead><tr><th>Booking</th><th>Name</th><th>Phone</th><th>Seats</th><th>Status</th></tr></thead><tbody>
{% for b in bookings %}
<tr><td>{{ b.id }}</td><td>{{ b.customer.name }}</td><td>{{ b.customer.phone_number or '' }}</td><td>{{ b.seat_number }}</td><td>{{ b.status }}</td></tr>
{% else %}<tr><td colspan=5 class='text-muted'>No passengers.</td></tr>
{% endfor %}
</tbody></table>
{% endblock %}""",

"technician.html": """{% extends 'base.html' %}{% block title %}Maintenance{% endblock %}{% block content %}
<h3>My maintenance jobs</h3>
{% if not staff %}<p class='text-muted'>No staff record is linked to your account.</p>{% endif %}
{% if stats %}<div class='row g-3 mb-4'>
<div class='col-md-3'><div class='card p-3'><small>Jobs</small><h4 id='totalTasks'>{{ stats.totalTasks }}</h4></div></div>
<div class='col-md-3'><div class='card p-3'><small>Total cost</small><h4 id='totalCost'>{{ '%.2f'|format(stats.totalCost) }}</h4></div></div>
<div class='col-md-3'><div class='card p-3'><small>Buses serviced</small><h4 id='busesServiced'>{{ stats.busesServiced }}</h4></div></div>
<div class='col-md-3'><div class='card p-3'><small>Last 30 days</small><h4 id='recentServices'>{{ stats.recentServices }}</h4></div></div>
</div>{% endif %}
<table class='table'><thead><tr><th>Bus</th><th>Service</th><th>Date</th><th>Cost</th><th>Next service</th></tr></thead><tbody>
{% for m in records %}
<tr><td>{{ m.bus.bus_number }}</td><td>{{ m.service_done }}</td><td>{{ m.service_date|dmy }}</td><td>{{ '%.2f'|format(m.cost or 0) }}</td><td>{{ m.nsd|dmy }}</td></tr>
{% else %}<tr><td colspan=5 class='text-muted'>No records.</td></tr>
{% endfor %}
</tbody></table>
{% if bus_status %}<h5>Bus status</h5>
<table class='table table-sm'><thead><tr><th>Bus</th><th>Route</th><th>Next departure</th><th>Maintenance</th></tr></thead><tbody>
{% for s in bus_status %}
<tr><td>{{ s.BusNumber }}</td><td>{{ s.RouteName or 'Not Assigned' }}</td><td>{{ s.NextDepartureTime or 'N/A' }}</td>
<td><span class='badge {{ 'bg-danger' if s.MaintenanceStatus == 'Overdue' else 'bg-success' }}'>{{ s.MaintenanceStatus }}</span></td></tr>
{% endfor %}
</tbody></table>{% endif %}
{% endblock %}""",

"staff.html": """{% extends 'base.html' %}{% block title %}Today{% endblock %}{% block content %}
<h3>Today's departures</h3>
<table class='table'><thead><tr><th>#</th><th>Route</th><th>Departure</th><th>Bus</th><th>Driver</th></tr></thead><tbody>
{% for s in schedules %}
<tr><td>{{ s.id }}</td><td>{{ s.route.route_name }}</td><td>{{ s.departure_time|dmy }}</td><td>{{ s.bus.bus_number }}</td><td>{{ s.driver.name if s.driver else '' }}</td></tr>
{% else %}<tr><td colspan=5 class='text-muted'>No departures today.</td></tr>
{% endfor %}
</tbody></table>
{% endblock %}""",

"admin/index.html": """{% extends 'base.html' %}{% block title %}Admin{% endblock %}{% block content %}
<h3>Admin</h3>
<div class='row g-3 mb-4'>
{% for name, r in resources.items() %}
<div class='col-md-3'><a class='card p-3 text-decoration-none' href='{{ url_for('admin_list', resource_name=name) }}'>
<small>{{ r.title }}</small><h4>{{ counts[r.title] }}</h4></a></div>
{% endfor %}
</div>
<div class='mb-3'>
<a class='btn btn-outline-primary' href='{{ url_for('admin_reports') }}'>Reports</a>
<a class='btn btn-outline-secondary' href='{{ url_for('admin_reports_csv') }}'>Export bookings CSV</a>
</div>
<h5>Today's departures</h5>
<table class='table table-sm'><thead><tr><th>#</th><th>Route</th><th>Departure</th><th>Bus</th></tr></thead><tbody>
{% for s in todays_schedules %}<tr><td>{{ s.id }}</td><td>{{ s.route.route_name }}</td><td>{{ s.departure_time|dmy }}</td><td>{{ s.bus.bus_number }}</td></tr>
{% else %}<tr><td colspan=4 class='text-muted'>None.</td></tr>{% endfor %}
</tbody></table>
{% endblock %}""",

"admin/list.html": """{% extends 'base.html' %}{% block title %}{{ resource.title }}{% endblock %}{% block content %}
<div class='d-flex justify-content-between mb-2'><h3>{{ resource.title }}</h3>
<a class='btn btn-success' href='{{ url_for('admin_new', resource_name=resource.name) }}'>Add</a></div>
<table class='table table-sm table-striped'><thead><tr>{% for c in resource.columns %}<th>{{ c }}</th>{% endfor %}<th></th></tr></thead><tbody>
{% for row in rows %}{% set row_id = row[resource.columns[0]] %}
<tr>{% for c in resource.columns %}<td>{{ row[c] if row[c] is not none else '' }}</td>{% endfor %}
<td class='text-nowrap'>
<a class='btn btn-sm btn-outline-primary' href='{{ url_for('admin_edit', resource_name=resource.name, obj_id=row_id) }}'>Edit</a>
<a class='btn btn-sm btn-outline-danger' href='{{ url_for('admin_delete', resource_name=resource.name, obj_id=row_id) }}'>Delete</a>
{% if resource.name == 'bookings' and row.Status != 'Cancelled' %}
<form method=post action='{{ url_for('admin_booking_cancel', booking_id=row_id) }}' class='d-inline'><button class='btn btn-sm btn-outline-warning'>Cancel</button></form>
{% endif %}
</td></tr>
{% else %}<tr><td colspan='{{ resource.columns|length + 1 }}' class='text-muted'>No records.</td></tr>
{% endfor %}
</tbody></table>
{% endblock %}""",

"admin/form.html": """{% extends 'base.html' %}{% block title %}{{ resource.title }} Form{% endblock %}{% block content %}
<form method=post class='card p-4 mx-auto' style='max-width:640px'>
<h4>{{ 'Edit' if obj_id else 'Add' }} {{ resource.title }}{% if obj_id %} #{{ obj_id }}{% endif %}</h4>
{% for f in resource.fields %}
<label class='form-label mt-2'>{{ f.label }}</label>
{% if f.kind == 'select' %}
<select class='form-select' name='{{ f.name }}'><option value=''>Select…</option>
{% for c in f.choices %}<option {% if values.get(f.name) == c %}selected{% endif %}>{{ c }}</option>{% endfor %}</select>
{% elif f.kind == 'radio' %}
<div>{% for c in f.choices %}<label class='me-3'><input type=radio name='{{ f.name }}' value='{{ c }}' {% if values.get(f.name) == c %}checked{% endif %}> {{ c }}</label>{% endfor %}</div>
{% elif f.kind == 'password' %}
<input class='form-control' type=password name='{{ f.name }}' placeholder='{{ 'Leave blank to keep' if obj_id else '' }}'>
{% else %}
<input class='form-control' name='{{ f.name }}' value='{{ values.get(f.name, '') }}'
  placeholder='{{ {'date': 'DD-MM-YYYY', 'datetime': 'DD-MM-YYYY HH:MM:SS', 'seats': '1A,2B', 'time': 'HH:MM'}.get(f.kind, '') }}'>
{% endif %}
{% endfor %}
<div class='mt-3'><button class='btn btn-primary'>Save</button>
<a class='btn btn-outline-secondary' href='{{ url_for('admin_list', resource_name=resource.name) }}'>Back</a></div>
</form>
{% endblock %}""",

"admin/reports.html": """{% extends 'base.html' %}{% block title %}Reports{% endblock %}{% block content %}
{% macro table(rows) %}{% if rows %}
<table class='table table-sm'><thead><tr>{% for k in rows[0].keys() %}<th>{{ k }}</th>{% endfor %}</tr></thead><tbody>
{% for r in rows %}<tr>{% for v in r.values() %}<td>{{ v if v is not none else '' }}</td>{% endfor %}</tr>{% endfor %}
</tbody></table>{% else %}<p class='text-muted'>No data.</p>{% endif %}{% endmacro %}
<h3>Reports</h3>
<form class='row g-2 mb-4'>
<div class='col-auto'><select class='form-select' name=period><option value=''>Custom range</option>
{% for key, label in [('last_month','Last month'),('last_year','Last year'),('q1','Q1'),('q2','Q2'),('q3','Q3'),('q4','Q4')] %}
<option value='{{ key }}' {% if period == key %}selected{% endif %}>{{ label }}</option>{% endfor %}</select></div>
<div class='col-auto'><input class='form-control' name=start placeholder='DD-MM-YYYY' value='{{ start }}'></div>
<div class='col-auto'><input class='form-control' name=end placeholder='DD-MM-YYYY' value='{{ end }}'></div>
<div class='col-auto'><button class='btn btn-secondary'>Apply</button></div>
<div class='col-auto'><a class='btn btn-outline-secondary' href='{{ url_for('admin_reports_csv') }}'>CSV</a></div>
</form>
{% for name, report in data.items() %}
<h5 class='mt-4 text-capitalize'>{{ name|replace('-', ' ') }} <a class='small' href='{{ api_links[name] }}'>JSON</a></h5>
{% if report is mapping and (report.values()|list)[0] is number %}{{ table([report]) }}
{% elif report is mapping %}{% for part, rows in report.items() %}<h6>{{ part }}</h6>{{ table(rows) }}{% endfor %}
{% else %}{{ table(report) }}{% endif %}
{% endfor %}
{% endblock %}""",

"errors/403.html": """{% extends 'base.html' %}{% block title %}Forbidden{% endblock %}{% block content %}<h3>403 · Forbidden</h3><p>You do not have permission to access this page.</p>{% endblock %}""",
"errors/404.html": """{% extends 'base.html' %}{% block title %}Not Found{% endblock %}{% block content %}<h3>404 · Not Found</h3><p>The page you requested does not exist.</p>{% endblock %}""",
}
