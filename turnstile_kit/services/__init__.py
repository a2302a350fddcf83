"""
Services turnstile-kit.

Modules:
- validation_service: Validation des tokens via siteverify (httpx)
- script_loader: Chargement unique du script du widget
- widget: Adaptateur du widget et protocole WidgetRenderer
- html_renderer: Rendu HTML serveur via Jinja2
"""
