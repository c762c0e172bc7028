"""
Management command to populate the database with demo data.
"""
import random
from datetime import time, timedelta

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from clinic.models import Appointment, DoctorProfile, DoctorSchedule, Drug, Patient, User
from clinic.services import booking, visits
from clinic.services.identity import caller_for_user


class Command(BaseCommand):
    help = 'Populate database with demo data'

    def add_arguments(self, parser):
        parser.add_argument('--days', type=int, default=7, help='Number of days of sessions to create')
        parser.add_argument('--seed', type=int, default=None)

    @transaction.atomic
    def handle(self, *args, **options):
        if options['seed'] is not None:
            random.seed(options['seed'])
        self.stdout.write('Creating demo data...')

        doctor = self.create_doctor()
        self.create_staff(doctor)
        drugs = self.create_drugs()
        patients = self.create_patients()
        schedules = self.create_schedules(doctor, options['days'])
        self.create_bookings(doctor, schedules, patients)
        self.create_visits(doctor, patients, drugs)

        self.stdout.write(self.style.SUCCESS('Demo data created.'))

    def create_doctor(self):
        doctor, created = User.objects.get_or_create(
            username='dr.rahman',
            defaults={
                'password': make_password('medlipi123'),
                'role': User.ROLE_DOCTOR,
                'first_name': 'Anisur',
                'last_name': 'Rahman',
            }
        )
        DoctorProfile.objects.get_or_create(
            user=doctor,
            defaults={
                'bmdc_reg': 'A-12345',
                'degree': 'MBBS, FCPS (Medicine)',
                'specialist_title': 'Medicine Specialist',
                'clinic_name': 'MedLipi Care Centre',
                'chamber_address': 'House 12, Road 5, Dhanmondi, Dhaka',
                'phone_number': '01700000000',
            }
        )
        self.stdout.write(f'Doctor: {doctor.username}')
        return doctor

    def create_staff(self, doctor):
        for username, role in (('reception.rahman', User.ROLE_RECEPTIONIST),
                               ('assistant.rahman', User.ROLE_ASSISTANT)):
            user, created = User.objects.get_or_create(
                username=username,
                defaults={'password': make_password('medlipi123'), 'role': role, 'parent': doctor}
            )
            self.stdout.write(f'Staff: {user.username} ({user.role})')

    def create_drugs(self):
        drugs_data = [
            ('Paracetamol', 'Napa, Ace', '500 mg', 'Take after meals. Do not exceed 4 g a day.'),
            ('Omeprazole', 'Seclo, Losectil', '20 mg', 'Take 30 minutes before breakfast.'),
            ('Amlodipine', 'Amdocal, Camlodin', '5 mg', 'Check blood pressure regularly.'),
            ('Metformin', 'Comet, Glucomin', '500 mg', 'Take with meals.'),
            ('Azithromycin', 'Zimax, Azin', '500 mg', 'Complete the full course.'),
            ('Cetirizine', 'Alatrol, Atrizin', '10 mg', 'May cause drowsiness.'),
        ]
        drugs = []
        for generic, trade, strength, counseling in drugs_data:
            drug, _ = Drug.objects.get_or_create(
                generic_name=generic, strength=strength,
                defaults={'trade_names': trade, 'counseling_points': counseling},
            )
            drugs.append(drug)
        self.stdout.write(f'Drugs: {len(drugs)}')
        return drugs

    def create_patients(self):
        names = ['Karim Uddin', 'Nasima Akter', 'Rafiq Islam', 'Shirin Sultana', 'Habib Hasan',
                 'Ayesha Begum', 'Tanvir Ahmed', 'Farzana Haque']
        patients = []
        for i, name in enumerate(names):
            patient, _ = Patient.objects.get_or_create(
                name=name,
                defaults={
                    'age': random.randint(18, 80),
                    'gender': 'Male' if i % 2 == 0 else 'Female',
                    'mobile': f'017{random.randint(10000000, 99999999)}',
                    'address': 'Dhaka',
                }
            )
            patients.append(patient)
        self.stdout.write(f'Patients: {len(patients)}')
        return patients

    def create_schedules(self, doctor, days):
        today = timezone.localdate()
        schedules = []
        for offset in range(days):
            day = today + timedelta(days=offset)
            for name, start, end in (('Morning', time(9, 0), time(13, 0)),
                                     ('Evening', time(17, 0), time(21, 0))):
                schedule, _ = DoctorSchedule.objects.get_or_create(
                    doctor=doctor, date=day, session_name=name,
                    defaults={'start_time': start, 'end_time': end, 'max_patients': 20},
                )
                schedules.append(schedule)
        self.stdout.write(f'Schedules: {len(schedules)}')
        return schedules

    def create_bookings(self, doctor, schedules, patients):
        caller = caller_for_user(doctor)
        created = 0
        for schedule in schedules[:2]:
            for patient in random.sample(patients, k=min(4, len(patients))):
                if Appointment.objects.filter(schedule=schedule, patient=patient).exists():
                    continue
                booking.book_serial(caller, schedule.id, patient.id)
                created += 1
        self.stdout.write(f'Bookings: {created}')

    def create_visits(self, doctor, patients, drugs):
        caller = caller_for_user(doctor)
        for patient in patients[:3]:
            chosen = random.sample(drugs, k=3)
            visits.create_visit(
                caller,
                {'id': patient.id},
                [{'drug_id': d.id, 'quantity': '1+0+1', 'sig_instruction': 'After meal', 'duration': '7 days'}
                 for d in chosen],
                {
                    'diagnosis_text': random.choice(['Viral fever', 'Hypertension', 'Acid peptic disease']),
                    'chief_complaint': 'Fever for 3 days',
                    'general_advice': 'Drink plenty of water.',
                    'examination_findings': {'bp': '120/80', 'pulse': '78'},
                },
            )
        self.stdout.write('Visits: 3')
