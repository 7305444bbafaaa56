import uuid

import pytest

from cession.document_status import SignerRole
from cession.errors import CessionNotFound
from cession.factories import CessionCreanceFactory
from cession.token_resolver import resolve_token


@pytest.mark.django_db
class TestResolveToken:
    def test_client_token(self):
        cession = CessionCreanceFactory()

        resolved = resolve_token(str(cession.client_sign_token))

        assert resolved.cession.pk == cession.pk
        assert resolved.role == SignerRole.CLIENT

    def test_repairer_token(self):
        cession = CessionCreanceFactory()

        resolved = resolve_token(cession.repairer_sign_token)

        assert resolved.cession.pk == cession.pk
        assert resolved.role == SignerRole.REPAIRER

    def test_tokens_are_distinct_per_party_and_cession(self):
        first, second = CessionCreanceFactory(), CessionCreanceFactory()

        tokens = {
            first.client_sign_token,
            first.repairer_sign_token,
            second.client_sign_token,
            second.repairer_sign_token,
        }
        assert len(tokens) == 4

    def test_resolution_is_repeatable(self):
        cession = CessionCreanceFactory()
        token = str(cession.client_sign_token)

        assert resolve_token(token) == resolve_token(token)

    @pytest.mark.parametrize("token", ["abc123", "", None, "../../etc/passwd"])
    def test_malformed_token(self, token):
        with pytest.raises(CessionNotFound) as exc_info:
            resolve_token(token)

        assert exc_info.value.message == "Document introuvable"

    def test_unknown_token_gives_same_error(self):
        CessionCreanceFactory()

        with pytest.raises(CessionNotFound) as exc_info:
            resolve_token(str(uuid.uuid4()))

        assert exc_info.value.message == "Document introuvable"
