"""
Tests des modèles Pydantic Turnstile.
"""

import pytest
from pydantic import ValidationError


class TestTurnstileProps:
    """Tests de la configuration du widget."""

    def test_defaults_match_service(self):
        """Valeurs par défaut du service Cloudflare."""
        from turnstile_kit import TurnstileProps

        props = TurnstileProps(site_key="0x4AAAAAAAtestsitekey")

        assert props.to_render_options() == {
            "sitekey": "0x4AAAAAAAtestsitekey",
            "theme": "auto",
            "size": "normal",
            "tabindex": 0,
            "response-field": True,
            "response-field-name": "cf-turnstile-response",
            "retry": "auto",
            "retry-interval": 8000,
            "refresh-expired": "auto",
            "appearance": "always",
            "execution": "render",
            "language": "auto",
        }

    def test_camel_case_names(self):
        """Les noms camelCase sont acceptés."""
        from turnstile_kit import TurnstileProps

        props = TurnstileProps.model_validate({
            "siteKey": "key",
            "className": "captcha",
            "tabIndex": 3,
            "refreshExpired": "manual",
            "responseFieldName": "captcha-token",
        })

        assert props.site_key == "key"
        assert props.class_name == "captcha"
        assert props.tab_index == 3
        assert props.refresh_expired == "manual"
        assert props.response_field_name == "captcha-token"

    def test_site_key_required(self):
        """site_key est obligatoire."""
        from turnstile_kit import TurnstileProps

        with pytest.raises(ValidationError):
            TurnstileProps()

    @pytest.mark.parametrize("field,value", [
        ("theme", "purple"),
        ("size", "huge"),
        ("appearance", "sometimes"),
        ("execution", "later"),
        ("sandbox", "maybe"),
    ])
    def test_type_level_constraints(self, field, value):
        """Les valeurs hors énumération sont refusées."""
        from turnstile_kit import TurnstileProps

        with pytest.raises(ValidationError):
            TurnstileProps(site_key="key", **{field: value})

    @pytest.mark.parametrize("sandbox,expected", [
        (True, "1x00000000000000000000AA"),
        ("pass", "1x00000000000000000000AA"),
        ("block", "2x00000000000000000000AB"),
        ("pass-invisible", "1x00000000000000000000BB"),
        ("block-invisible", "2x00000000000000000000BB"),
        (False, "real-site-key"),
        (None, "real-site-key"),
    ])
    def test_sandbox_site_key(self, sandbox, expected):
        """Le sandbox remplace la clé site au rendu."""
        from turnstile_kit import TurnstileProps

        props = TurnstileProps(site_key="real-site-key", sandbox=sandbox)

        assert props.to_render_options()["sitekey"] == expected
        assert props.site_key == "real-site-key"

    def test_props_are_immutable(self):
        """Les props sont figées."""
        from turnstile_kit import TurnstileProps

        props = TurnstileProps(site_key="key")

        with pytest.raises(ValidationError):
            props.theme = "dark"


class TestTurnstileValidateResponse:
    """Tests de la réponse siteverify."""

    def test_unset_fields_not_in_dict(self):
        """to_dict ne contient que les champs reçus."""
        from turnstile_kit import TurnstileValidateResponse

        response = TurnstileValidateResponse.model_validate({"success": True})

        assert response.to_dict() == {"success": True}
        assert response.error_codes is None
        assert response.has_error("internal-error") is False

    def test_extra_fields_preserved(self):
        """Les champs supplémentaires du service sont conservés."""
        from turnstile_kit import TurnstileValidateResponse

        body = {
            "success": True,
            "hostname": "example.com",
            "metadata": {"ephemeral_id": "x:abc"},
        }
        response = TurnstileValidateResponse.model_validate(body)

        assert response.to_dict() == body

    @pytest.mark.parametrize("value", ["yes", "on", "false", 1, 0])
    def test_success_must_be_boolean(self, value):
        """success n'est jamais converti depuis une chaîne ou un entier."""
        from turnstile_kit import TurnstileValidateResponse

        with pytest.raises(ValidationError):
            TurnstileValidateResponse.model_validate({"success": value})
