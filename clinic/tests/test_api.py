"""
Integration tests for the MedLipi API.

These tests exercise the booking and prescription endpoints end to end,
including role checks, error bodies and the public surface.  They use
Django REST framework's APIClient within the APITestCase base class.
"""

from datetime import time, timedelta

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from ..models import Appointment, DoctorProfile, DoctorSchedule, Drug, Patient, PrescriptionLine, User


class ClinicAPITests(APITestCase):
    def setUp(self) -> None:
        """Create a doctor with a receptionist, a portal patient, drugs and a session."""
        self.doctor = User.objects.create_user(username="doc", password="P@ssw0rd1", role="doctor",
                                               first_name="Anisur", last_name="Rahman")
        DoctorProfile.objects.create(user=self.doctor, clinic_name="Care Centre", specialist_title="Medicine")
        self.receptionist = User.objects.create_user(username="desk", password="P@ssw0rd1",
                                                     role="receptionist", parent=self.doctor)
        self.patient_user = User.objects.create_user(username="01711111111", password="P@ssw0rd1", role="patient")
        self.patient = Patient.objects.create(user=self.patient_user, name="Karim Uddin", mobile="01711111111")
        self.walk_in = Patient.objects.create(name="Walk In", mobile="01722222222")
        self.drug1 = Drug.objects.create(generic_name="Paracetamol", trade_names="Napa", strength="500 mg")
        self.drug2 = Drug.objects.create(generic_name="Omeprazole", trade_names="Seclo", strength="20 mg")
        self.schedule = DoctorSchedule.objects.create(
            doctor=self.doctor,
            date=timezone.localdate() + timedelta(days=1),
            session_name="Evening",
            start_time=time(17, 0),
            end_time=time(21, 0),
            max_patients=2,
        )

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------
    def test_patient_books_serial(self) -> None:
        self.client.force_authenticate(user=self.patient_user)
        url = reverse("book_serial")
        resp = self.client.post(url, {"schedule_id": self.schedule.id}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data, {"message": "Booking Successful", "serial": 1})

        again = self.client.post(url, {"scheduleId": self.schedule.id}, format="json")
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(again.data, {"message": "You have already booked a serial for this session."})

    def test_receptionist_books_until_full(self) -> None:
        extra = Patient.objects.create(name="Third")
        self.client.force_authenticate(user=self.receptionist)
        url = reverse("book_serial")
        serials = []
        for p in (self.patient, self.walk_in):
            resp = self.client.post(url, {"schedule_id": self.schedule.id, "patient_id": p.id}, format="json")
            self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
            serials.append(resp.data["serial"])
        self.assertEqual(serials, [1, 2])

        full = self.client.post(url, {"schedule_id": self.schedule.id, "patient_id": extra.id}, format="json")
        self.assertEqual(full.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(full.data["message"], "Sorry, this session is full.")
        self.assertEqual(Appointment.objects.get(patient=self.walk_in).source, Appointment.SOURCE_RECEPTION)

    def test_booking_errors(self) -> None:
        self.client.force_authenticate(user=self.receptionist)
        url = reverse("book_serial")
        missing = self.client.post(url, {"schedule_id": self.schedule.id}, format="json")
        self.assertEqual(missing.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(missing.data, {"message": "Patient ID missing."})

        unknown = self.client.post(url, {"schedule_id": 99999, "patient_id": self.walk_in.id}, format="json")
        self.assertEqual(unknown.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(unknown.data, {"message": "Schedule not found"})

        invalid = self.client.post(url, {"schedule_id": "abc"}, format="json")
        self.assertEqual(invalid.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("schedule_id", invalid.data["errors"])

    def test_booking_requires_authentication(self) -> None:
        resp = self.client.post(reverse("book_serial"), {"schedule_id": self.schedule.id}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn("message", resp.data)

    # ------------------------------------------------------------------
    # Sessions & appointments
    # ------------------------------------------------------------------
    def test_session_lifecycle(self) -> None:
        self.client.force_authenticate(user=self.receptionist)
        created = self.client.post(reverse("create_session"), {
            "date": (timezone.localdate() + timedelta(days=2)).isoformat(),
            "session_name": "Morning",
            "start_time": "09:00",
            "end_time": "12:00",
            "max_patients": 5,
        }, format="json")
        self.assertEqual(created.status_code, status.HTTP_201_CREATED)
        new_id = created.data["schedule"]["id"]
        self.assertEqual(DoctorSchedule.objects.get(id=new_id).doctor_id, self.doctor.id)

        listing = self.client.get(reverse("my_sessions"), {"view": "current"})
        self.assertEqual([s["id"] for s in listing.data], [self.schedule.id, new_id])

        deleted = self.client.delete(reverse("delete_session", args=[new_id]))
        self.assertEqual(deleted.status_code, status.HTTP_200_OK)
        self.assertFalse(DoctorSchedule.objects.filter(id=new_id).exists())

    def test_session_end_must_follow_start(self) -> None:
        self.client.force_authenticate(user=self.doctor)
        resp = self.client.post(reverse("create_session"), {
            "date": timezone.localdate().isoformat(), "start_time": "12:00", "end_time": "09:00",
        }, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("end_time", resp.data["errors"])

    def test_delete_session_with_bookings(self) -> None:
        self.client.force_authenticate(user=self.receptionist)
        self.client.post(reverse("book_serial"), {"schedule_id": self.schedule.id, "patient_id": self.walk_in.id},
                         format="json")
        resp = self.client.delete(reverse("delete_session", args=[self.schedule.id]))
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            resp.data["message"],
            "This session has active appointments. Cancel them first via the Schedule page.",
        )

    def test_patient_cannot_manage_sessions(self) -> None:
        self.client.force_authenticate(user=self.patient_user)
        resp = self.client.get(reverse("my_sessions"))
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_appointment_status_flow(self) -> None:
        self.client.force_authenticate(user=self.receptionist)
        self.client.post(reverse("book_serial"), {"schedule_id": self.schedule.id, "patient_id": self.walk_in.id},
                         format="json")
        appt = Appointment.objects.get(patient=self.walk_in)

        upcoming = self.client.get(reverse("list_appointments"), {"type": "upcoming"})
        self.assertEqual(upcoming.data[0]["patientName"], "Walk In")

        url = reverse("appointment_status", args=[appt.id])
        done = self.client.put(url, {"status": "Completed"}, format="json")
        self.assertEqual(done.status_code, status.HTTP_200_OK)
        back = self.client.put(url, {"status": "Cancelled"}, format="json")
        self.assertEqual(back.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(back.data["message"], "Cannot change status from Completed to Cancelled.")

    def test_available_sessions(self) -> None:
        self.client.force_authenticate(user=self.patient_user)
        resp = self.client.get(reverse("available_sessions"), {"doctor_id": self.doctor.id})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data[0]["id"], self.schedule.id)
        self.assertEqual(resp.data[0]["bookedCount"], 0)

    # ------------------------------------------------------------------
    # Prescriptions
    # ------------------------------------------------------------------
    def _create_prescription(self):
        return self.client.post(reverse("create_prescription"), {
            "patient": {"id": self.walk_in.id, "address": "Dhanmondi"},
            "lines": [
                {"drug_id": self.drug1.id, "quantity": "1+0+1", "sig": "After meal", "duration": "5 days"},
                {"drug_id": None, "quantity": "1"},
            ],
            "diagnosis_text": "Viral fever",
            "examination_findings": {"bp": "120/80"},
        }, format="json")

    def test_prescription_create_reprint_replace(self) -> None:
        self.client.force_authenticate(user=self.doctor)
        created = self._create_prescription()
        self.assertEqual(created.status_code, status.HTTP_201_CREATED)
        self.assertEqual(created.data["lineCount"], 1)
        self.assertEqual(created.data["patientId"], self.walk_in.id)
        ts = created.data["timestamp"]

        reprint = self.client.get(reverse("reprint_prescription", args=[self.walk_in.id]), {"timestamp": ts})
        self.assertEqual(reprint.status_code, status.HTTP_200_OK)
        self.assertEqual(reprint.data["prescription"]["diagnosis"], "Viral fever")
        self.assertEqual(reprint.data["items"][0]["sig"], "After meal")

        replaced = self.client.put(reverse("replace_prescription"), {
            "patient_id": self.walk_in.id,
            "timestamp": ts,
            "lines": [{"drug_id": self.drug1.id}, {"drug_id": self.drug2.id}],
            "diagnosis_text": "Gastritis",
        }, format="json")
        self.assertEqual(replaced.status_code, status.HTTP_200_OK)
        self.assertEqual(replaced.data["lineCount"], 2)
        self.assertEqual(replaced.data["publicUid"], created.data["publicUid"])
        self.assertEqual(PrescriptionLine.objects.filter(patient=self.walk_in).count(), 2)

        history = self.client.get(reverse("patient_history", args=[self.walk_in.id]))
        self.assertEqual(len(history.data["visits"]), 1)
        self.assertEqual(history.data["patient"]["address"], "Dhanmondi")

        recent = self.client.get(reverse("recent_prescriptions"))
        self.assertEqual(recent.data[0]["diagnosis"], "Gastritis")

    def test_reprint_not_found(self) -> None:
        self.client.force_authenticate(user=self.doctor)
        resp = self.client.get(reverse("reprint_prescription", args=[self.walk_in.id]),
                               {"timestamp": timezone.now().isoformat()})
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data, {"message": "Prescription not found"})

    def test_only_doctors_write_prescriptions(self) -> None:
        self.client.force_authenticate(user=self.receptionist)
        resp = self._create_prescription()
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(PrescriptionLine.objects.count(), 0)

    # ------------------------------------------------------------------
    # Portal & public
    # ------------------------------------------------------------------
    def test_portal_history_and_appointments(self) -> None:
        self.client.force_authenticate(user=self.doctor)
        self.client.post(reverse("create_prescription"), {
            "patient": {"id": self.patient.id},
            "lines": [{"drug_id": self.drug1.id}],
            "diagnosis_text": "Cough",
        }, format="json")

        self.client.force_authenticate(user=self.patient_user)
        self.client.post(reverse("book_serial"), {"schedule_id": self.schedule.id}, format="json")
        history = self.client.get(reverse("portal_my_history"))
        self.assertEqual(history.status_code, status.HTTP_200_OK)
        self.assertEqual(history.data[0]["diagnosis"], "Cough")
        self.assertEqual(history.data[0]["doctorName"], "Anisur Rahman")

        appts = self.client.get(reverse("portal_my_appointments"))
        self.assertEqual(len(appts.data), 1)
        self.assertEqual(appts.data[0]["serial"], 1)
        self.assertEqual(appts.data[0]["source"], "Online")

        uid = history.data[0]["publicUid"]
        self.client.force_authenticate(user=None)
        doc = self.client.get(reverse("public_prescription", args=[uid]))
        self.assertEqual(doc.status_code, status.HTTP_200_OK)
        self.assertEqual(doc.data["patient"]["name"], "Karim Uddin")

    def test_public_doctors_and_schedules(self) -> None:
        doctors = self.client.get(reverse("public_doctors"))
        self.assertEqual(doctors.status_code, status.HTTP_200_OK)
        self.assertEqual([d["id"] for d in doctors.data], [self.doctor.id])
        self.assertEqual(doctors.data[0]["clinicName"], "Care Centre")

        sessions = self.client.get(reverse("public_doctor_schedules", args=[self.doctor.id]))
        self.assertEqual([s["id"] for s in sessions.data], [self.schedule.id])

        missing = self.client.get(reverse("public_doctor_schedules", args=[self.receptionist.id]))
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)

    def test_healthz(self) -> None:
        resp = self.client.get(reverse("healthz"))
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["ok"])
