"""
Tests du repository : création, liste filtrée, statuts et écritures partielles.
"""

from decimal import Decimal

import pytest

from cession import repository
from cession.document_status import CessionStatus, SignerRole
from cession.errors import CessionNotFound, CessionValidationError, InvalidTransition
from cession.factories import CessionCreanceFactory
from cession.models import CessionCreance
from core.factories import UserFactory


@pytest.mark.django_db
class TestListCessions:
    def test_search_matches_name_or_invoice_number(self, user):
        dupont = CessionCreanceFactory(created_by=user, recipient_name="Marie Dupont", invoice_number="F-001")
        durand = CessionCreanceFactory(created_by=user, recipient_name="Paul Durand", invoice_number="F-DUP-9")
        CessionCreanceFactory(created_by=user, recipient_name="Luc Martin", invoice_number="F-003")

        results = list(repository.list_cessions(user=user, search="dup"))

        assert {c.pk for c in results} == {dupont.pk, durand.pk}

    def test_search_and_status_are_combined(self, user):
        CessionCreanceFactory(created_by=user, recipient_name="Marie Dupont", status=CessionStatus.PENDING)
        sent = CessionCreanceFactory(created_by=user, recipient_name="Marc Dupont", status=CessionStatus.SENT)

        results = list(repository.list_cessions(user=user, status="sent", search="DUPONT"))

        assert [c.pk for c in results] == [sent.pk]

    def test_all_status_means_no_filter(self, user):
        CessionCreanceFactory.create_batch(2, created_by=user)
        CessionCreanceFactory(created_by=user, signed=True)

        assert repository.list_cessions(user=user, status="all").count() == 3

    def test_newest_first(self, user):
        first = CessionCreanceFactory(created_by=user)
        second = CessionCreanceFactory(created_by=user)

        results = list(repository.list_cessions(user=user))

        assert [c.pk for c in results] == [second.pk, first.pk]

    def test_only_own_cessions(self, user):
        CessionCreanceFactory(created_by=UserFactory())

        assert repository.list_cessions(user=user).count() == 0

    def test_unknown_status(self, user):
        with pytest.raises(CessionValidationError):
            repository.list_cessions(user=user, status="archived")


@pytest.mark.django_db
class TestGetAndCreate:
    def test_get_other_garage_cession_is_not_found(self, user):
        cession = CessionCreanceFactory()

        with pytest.raises(CessionNotFound):
            repository.get_cession(cession.pk, user=user)

    def test_get_malformed_id(self):
        with pytest.raises(CessionNotFound):
            repository.get_cession("pas-un-uuid")

    def test_create_mints_two_tokens(self, user, invoice):
        cession = repository.create_cession(
            {
                "invoice_id": invoice.id,
                "recipient_name": "Jean Client",
                "recipient_email": "jean@example.com",
                "amount": Decimal("500.00"),
                "due_date": "2030-01-31",
            },
            user=user,
        )

        assert cession.status == CessionStatus.PENDING
        assert cession.client_sign_token != cession.repairer_sign_token
        assert cession.client_signature_url is None
        assert cession.document_url is None

    def test_cannot_create_signed(self, user, invoice):
        with pytest.raises(InvalidTransition):
            repository.create_cession(
                {"invoice_id": invoice.id, "status": CessionStatus.SIGNED}, user=user
            )


@pytest.mark.django_db
class TestUpdateSignature:
    def test_first_signature_does_not_complete(self):
        cession = CessionCreanceFactory()

        update = repository.update_signature(cession.pk, SignerRole.CLIENT, "https://cdn/x.jpg")

        assert update.completed is False
        assert update.cession.client_signature_url == "https://cdn/x.jpg"
        assert update.cession.status == CessionStatus.PENDING

    def test_second_signature_completes_once(self):
        cession = CessionCreanceFactory(client_signed=True, status=CessionStatus.SENT)

        update = repository.update_signature(cession.pk, SignerRole.REPAIRER, "https://cdn/d.jpg")

        assert update.completed is True
        assert update.cession.status == CessionStatus.SIGNED
        assert update.cession.signed_at is not None
        # Déjà signée : la complétude n'est plus gagnable
        assert repository.complete_if_fully_signed(cession.pk) is False

    def test_write_only_touches_own_field(self):
        cession = CessionCreanceFactory()
        # Copie obsolète modifiée ailleurs
        CessionCreance.objects.filter(pk=cession.pk).update(dealer_signature_url="https://cdn/d.jpg")

        update = repository.update_signature(cession.pk, SignerRole.CLIENT, "https://cdn/c.jpg")

        assert update.completed is True
        stored = CessionCreance.objects.get(pk=cession.pk)
        assert stored.dealer_signature_url == "https://cdn/d.jpg"
        assert stored.client_signature_url == "https://cdn/c.jpg"
        assert stored.status == CessionStatus.SIGNED

    def test_resigning_overwrites_and_returns_previous(self):
        cession = CessionCreanceFactory(client_signature_url="https://cdn/old.jpg")

        update = repository.update_signature(cession.pk, SignerRole.CLIENT, "https://cdn/new.jpg")

        assert update.previous_url == "https://cdn/old.jpg"
        assert update.cession.client_signature_url == "https://cdn/new.jpg"
        assert update.completed is False

    @pytest.mark.parametrize(
        "status", [CessionStatus.DRAFT, CessionStatus.REJECTED, CessionStatus.SIGNED]
    )
    def test_refused_outside_signable_statuses(self, status):
        cession = CessionCreanceFactory(status=status)

        with pytest.raises(InvalidTransition):
            repository.update_signature(cession.pk, SignerRole.CLIENT, "https://cdn/c.jpg")

        assert CessionCreance.objects.get(pk=cession.pk).client_signature_url is None

    def test_history_records_completion(self):
        cession = CessionCreanceFactory(client_signed=True)

        repository.update_signature(cession.pk, SignerRole.REPAIRER, "https://cdn/d.jpg")

        latest = CessionCreance.objects.get(pk=cession.pk).history.first()
        assert latest.status == CessionStatus.SIGNED


@pytest.mark.django_db
class TestUpdateStatus:
    def test_repairer_sets_sent(self, user):
        cession = CessionCreanceFactory(created_by=user)

        updated = repository.update_status(cession.pk, CessionStatus.SENT, user=user)

        assert updated.status == CessionStatus.SENT

    def test_signed_cannot_be_requested(self, user):
        cession = CessionCreanceFactory(created_by=user, client_signed=True, dealer_signed=True)

        with pytest.raises(InvalidTransition):
            repository.update_status(cession.pk, CessionStatus.SIGNED, user=user)

        assert CessionCreance.objects.get(pk=cession.pk).status == CessionStatus.PENDING

    def test_signed_cession_is_locked(self, user):
        cession = CessionCreanceFactory(created_by=user, signed=True)

        with pytest.raises(InvalidTransition):
            repository.update_status(cession.pk, CessionStatus.DRAFT, user=user)

    def test_other_garage(self, user):
        cession = CessionCreanceFactory()

        with pytest.raises(CessionNotFound):
            repository.update_status(cession.pk, CessionStatus.SENT, user=user)


@pytest.mark.django_db
class TestUpdateFieldsAndDelete:
    def test_update_editable_fields(self, user):
        cession = CessionCreanceFactory(created_by=user, amount=Decimal("100.00"))

        updated, changed = repository.update_fields(
            cession.pk, {"amount": Decimal("250.00"), "notes": "Franchise déduite"}, user=user
        )

        assert set(changed) == {"amount", "notes"}
        assert CessionCreance.objects.get(pk=cession.pk).amount == Decimal("250.00")

    def test_signed_cession_cannot_be_edited(self, user):
        cession = CessionCreanceFactory(created_by=user, signed=True)

        with pytest.raises(InvalidTransition):
            repository.update_fields(cession.pk, {"amount": Decimal("1.00")}, user=user)

    def test_delete_signed_cession(self, user, django_capture_on_commit_callbacks):
        cession = CessionCreanceFactory(created_by=user, signed=True)

        with django_capture_on_commit_callbacks(execute=True):
            repository.delete_cession(cession.pk, user=user)

        assert not CessionCreance.objects.filter(pk=cession.pk).exists()

    def test_set_document_url_returns_previous(self):
        cession = CessionCreanceFactory(document_url="/media/cessions/old.pdf")

        previous = repository.set_document_url(cession.pk, "/media/cessions/new.pdf")

        assert previous == "/media/cessions/old.pdf"
        assert CessionCreance.objects.get(pk=cession.pk).document_url == "/media/cessions/new.pdf"
