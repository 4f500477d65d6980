"""Tests for the ORM models."""
from hometrace.models import Appointment


class TestAppointmentModel:
    def test_customer_name_is_a_property(self):
        assert isinstance(Appointment.__dict__["customer_name"], property)

    def test_relationships_and_customer_name(self, make_appointment, listing, agent):
        appointment = make_appointment(first_name="Ada", last_name="Lovelace")

        assert appointment.customer_name == "Ada Lovelace"
        assert appointment.property.id == listing.id
        assert appointment.agent.id == agent.id
        assert appointment in listing.appointments
