"""Clinic application for the MedLipi backend.

This package contains models, services, serializers, views and route
registrations for scheduling, serial booking, prescriptions and the
patient portal.
"""
