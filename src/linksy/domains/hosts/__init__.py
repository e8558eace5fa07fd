# src/linksy/domains/hosts/__init__.py
"""
Hosts Domain - Embeddable search widget

This domain handles:
- Resolving a widget host by slug with its monthly budget check
- Public provider search and referral submission
- Public tenant branding and the need taxonomy
"""
