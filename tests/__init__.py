"""
Tests pour turnstile-kit.

Structure:
- test_validation.py: Validation de token (siteverify)
- test_widget.py: Adaptateur du widget
- test_script_loader.py: Chargement unique du script
- test_html_renderer.py: Rendu HTML serveur
- test_models.py: Modèles Pydantic
- test_api.py: Endpoints FastAPI
- test_validators.py: Utilitaires
- conftest.py: Fixtures pytest partagées
"""
