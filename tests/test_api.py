from sqlalchemy.exc import OperationalError

from app.repositories.account_store import AccountStore

from .conftest import PASSWORD, future_at


class TestAuthEndpoints:

    def test_patient_login(self, client, patient):
        """Test patient login over HTTP."""
        response = client.post(
            "/api/v1/auth/patient/login",
            json={"identifier": patient.email, "password": PASSWORD}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["role"] == "patient"
        assert "token" in data

    def test_admin_login(self, client, admin):
        """Test admin login by username."""
        response = client.post(
            "/api/v1/auth/admin/login",
            json={"identifier": "admin", "password": PASSWORD}
        )
        assert response.status_code == 200
        assert response.json()["role"] == "admin"

    def test_login_invalid_credentials(self, client, doctor):
        """Test login with a wrong password."""
        response = client.post(
            "/api/v1/auth/doctor/login",
            json={"identifier": doctor.email, "password": "wrongpassword"}
        )
        assert response.status_code == 401
        assert response.json()["error"] == "UnauthorizedError"

    def test_login_unknown_role(self, client):
        """Test login for a role that does not exist."""
        response = client.post(
            "/api/v1/auth/nurse/login",
            json={"identifier": "someone", "password": PASSWORD}
        )
        assert response.status_code == 400

    def test_verify_token(self, client, doctor, auth_headers):
        """Test token verification for the matching role."""
        response = client.post(
            "/api/v1/auth/verify-token",
            params={"role": "doctor"},
            headers=auth_headers(doctor.email)
        )
        assert response.status_code == 200
        assert response.json() == {"valid": True, "role": "doctor", "subject": doctor.email}

    def test_verify_token_wrong_role(self, client, doctor, auth_headers):
        """Test a doctor token does not verify as a patient token."""
        response = client.post(
            "/api/v1/auth/verify-token",
            params={"role": "patient"},
            headers=auth_headers(doctor.email)
        )
        assert response.status_code == 401

    def test_invalid_token(self, client):
        """Test a protected endpoint with a garbage token."""
        response = client.get(
            "/api/v1/patients/me",
            headers={"Authorization": "Bearer invalid_token"}
        )
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_missing_token(self, client):
        """Test a protected endpoint without a token."""
        response = client.get("/api/v1/appointments")
        assert response.status_code == 401

    def test_account_lookup_failure(self, client, patient, auth_headers, monkeypatch):
        """Test a storage failure during authentication is a server error."""
        headers = auth_headers(patient.email)

        def unavailable(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database is unavailable"))

        monkeypatch.setattr(AccountStore, "find_patient_by_email", unavailable)

        response = client.get("/api/v1/patients/me", headers=headers)
        assert response.status_code == 500
        assert response.json()["error"] == "InternalError"


class TestPatientEndpoints:

    def test_register(self, client):
        """Test patient registration."""
        response = client.post("/api/v1/patients", json={
            "name": "Mary Major",
            "email": "mary@example.com",
            "password": "Secret123",
            "phone": "5550001111",
        })
        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "mary@example.com"
        assert "password" not in data
        assert "password_hash" not in data

    def test_register_duplicate(self, client, patient):
        """Test registering an existing email."""
        response = client.post("/api/v1/patients", json={
            "name": "John Again",
            "email": patient.email,
            "password": "Secret123",
            "phone": "5550001111",
        })
        assert response.status_code == 409

    def test_register_invalid_phone(self, client):
        """Test request validation of the phone number."""
        response = client.post("/api/v1/patients", json={
            "name": "Mary Major",
            "email": "mary@example.com",
            "password": "Secret123",
            "phone": "123",
        })
        assert response.status_code == 422

    def test_me(self, client, patient, auth_headers):
        """Test fetching the caller's own details."""
        response = client.get("/api/v1/patients/me", headers=auth_headers(patient.email))
        assert response.status_code == 200
        assert response.json()["name"] == "John Doe"


class TestDoctorEndpoints:

    def test_list_doctors(self, client, doctor, other_doctor):
        """Test the public doctor search."""
        response = client.get("/api/v1/doctors", params={"time": "PM"})
        assert response.status_code == 200
        assert [d["name"] for d in response.json()] == ["Bob Jones"]

    def test_list_doctors_invalid_time(self, client, doctor):
        """Test an unknown period is a bad request."""
        response = client.get("/api/v1/doctors", params={"time": "noon"})
        assert response.status_code == 400

    def test_availability(self, client, doctor, patient, make_appointment):
        """Test booked slots are removed from a day's availability."""
        make_appointment(doctor, patient, future_at(10))
        day = future_at(0).date().isoformat()

        response = client.get(f"/api/v1/doctors/{doctor.id}/availability", params={"date": day})

        assert response.status_code == 200
        assert response.json() == {
            "doctor_id": doctor.id,
            "date": day,
            "available_times": ["09:00", "11:00"],
        }

    def test_create_doctor_requires_admin(self, client, patient, auth_headers):
        """Test only admins may add doctors."""
        response = client.post("/api/v1/doctors", headers=auth_headers(patient.email), json={
            "name": "Carol White",
            "specialty": "Neurology",
            "email": "carol@clinic.com",
            "password": "Secret123",
            "phone": "5550000003",
        })
        assert response.status_code == 401

    def test_admin_manages_doctor(self, client, admin, auth_headers):
        """Test the admin create, update and delete flow."""
        headers = auth_headers(admin.username)
        response = client.post("/api/v1/doctors", headers=headers, json={
            "name": "Carol White",
            "specialty": "Neurology",
            "email": "carol@clinic.com",
            "password": "Secret123",
            "phone": "5550000003",
            "available_times": ["9:00 AM"],
        })
        assert response.status_code == 201
        doctor_id = response.json()["id"]

        response = client.put(
            f"/api/v1/doctors/{doctor_id}/available-times",
            headers=headers,
            json={"available_times": ["14:00"]}
        )
        assert response.status_code == 200
        assert response.json()["available_times"] == ["14:00"]

        response = client.delete(f"/api/v1/doctors/{doctor_id}", headers=headers)
        assert response.status_code == 200

        response = client.delete(f"/api/v1/doctors/{doctor_id}", headers=headers)
        assert response.status_code == 404


class TestAppointmentEndpoints:

    def test_booking_flow(self, client, doctor, patient, other_patient, auth_headers):
        """Test booking, then an overlapping request being refused."""
        response = client.post(
            "/api/v1/appointments",
            headers=auth_headers(patient.email),
            json={"doctor_id": doctor.id, "appointment_time": future_at(10).isoformat()}
        )
        assert response.status_code == 201
        data = response.json()
        assert data["patient_id"] == patient.id
        assert data["doctor_name"] == "Alice Smith"
        assert data["status"] == 0

        response = client.post(
            "/api/v1/appointments",
            headers=auth_headers(other_patient.email),
            json={"doctor_id": doctor.id, "appointment_time": future_at(10, 30).isoformat()}
        )
        assert response.status_code == 409
        assert response.json()["message"] == "Selected time is not available"

    def test_patient_cannot_book_for_someone_else(self, client, doctor, patient, other_patient, auth_headers):
        """Test patient_id in the body is ignored for patients."""
        response = client.post(
            "/api/v1/appointments",
            headers=auth_headers(patient.email),
            json={
                "doctor_id": doctor.id,
                "patient_id": other_patient.id,
                "appointment_time": future_at(10).isoformat(),
            }
        )
        assert response.status_code == 201
        assert response.json()["patient_id"] == patient.id

    def test_admin_booking_needs_patient(self, client, admin, doctor, auth_headers):
        """Test admins must name the patient."""
        response = client.post(
            "/api/v1/appointments",
            headers=auth_headers(admin.username),
            json={"doctor_id": doctor.id, "appointment_time": future_at(10).isoformat()}
        )
        assert response.status_code == 400

    def test_booking_in_the_past(self, client, doctor, patient, auth_headers):
        """Test past instants are rejected."""
        response = client.post(
            "/api/v1/appointments",
            headers=auth_headers(patient.email),
            json={"doctor_id": doctor.id, "appointment_time": future_at(10, days=-1).isoformat()}
        )
        assert response.status_code == 400

    def test_list_own_appointments(self, client, doctor, patient, other_patient, make_appointment, auth_headers):
        """Test patients only list their own appointments."""
        mine = make_appointment(doctor, patient, future_at(10))
        make_appointment(doctor, other_patient, future_at(14))

        response = client.get(
            "/api/v1/appointments",
            headers=auth_headers(patient.email),
            params={"condition": "future"}
        )

        assert response.status_code == 200
        assert [a["id"] for a in response.json()] == [mine.id]

    def test_doctor_listing_requires_date(self, client, doctor, auth_headers):
        """Test doctors must pass a date."""
        response = client.get("/api/v1/appointments", headers=auth_headers(doctor.email))
        assert response.status_code == 400

    def test_reschedule(self, client, doctor, patient, make_appointment, auth_headers):
        """Test a patient moving their own appointment."""
        appointment = make_appointment(doctor, patient, future_at(10))

        response = client.put(
            f"/api/v1/appointments/{appointment.id}",
            headers=auth_headers(patient.email),
            json={"appointment_time": future_at(15).isoformat()}
        )

        assert response.status_code == 200
        assert response.json()["appointment_time"] == future_at(15).isoformat()

    def test_reschedule_foreign_appointment(self, client, doctor, patient, other_patient, make_appointment, auth_headers):
        """Test a patient cannot move another patient's appointment."""
        appointment = make_appointment(doctor, other_patient, future_at(10))

        response = client.put(
            f"/api/v1/appointments/{appointment.id}",
            headers=auth_headers(patient.email),
            json={"appointment_time": future_at(15).isoformat()}
        )

        assert response.status_code == 403

    def test_cancel(self, client, doctor, patient, make_appointment, auth_headers):
        """Test the owner cancelling."""
        appointment = make_appointment(doctor, patient, future_at(10))

        response = client.delete(f"/api/v1/appointments/{appointment.id}", headers=auth_headers(patient.email))

        assert response.status_code == 200
        assert response.json() == {"message": "Appointment canceled successfully"}

    def test_cancel_foreign_appointment(self, client, doctor, patient, other_patient, make_appointment, auth_headers):
        """Test cancelling someone else's appointment is forbidden."""
        appointment = make_appointment(doctor, other_patient, future_at(10))

        response = client.delete(f"/api/v1/appointments/{appointment.id}", headers=auth_headers(patient.email))

        assert response.status_code == 403

    def test_doctor_completes_appointment(self, client, doctor, patient, make_appointment, auth_headers):
        """Test the treating doctor marking the visit completed."""
        appointment = make_appointment(doctor, patient, future_at(10))

        response = client.patch(
            f"/api/v1/appointments/{appointment.id}/status",
            headers=auth_headers(doctor.email),
            json={"status": 1}
        )

        assert response.status_code == 200
        assert response.json()["status"] == 1

    def test_other_doctor_cannot_change_status(self, client, doctor, other_doctor, patient, make_appointment, auth_headers):
        """Test a doctor cannot touch another doctor's appointment."""
        appointment = make_appointment(doctor, patient, future_at(10))

        response = client.patch(
            f"/api/v1/appointments/{appointment.id}/status",
            headers=auth_headers(other_doctor.email),
            json={"status": 1}
        )

        assert response.status_code == 403


class TestServiceEndpoints:

    def test_health(self, client):
        """Test the health check."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_unknown_route(self, client):
        """Test the JSON 404 body."""
        response = client.get("/api/v1/nowhere")
        assert response.status_code == 404
        assert response.json()["path"] == "/api/v1/nowhere"
