"""
Routes API pour turnstile-kit.

Modules:
- turnstile: Page du widget et validation de token
"""
