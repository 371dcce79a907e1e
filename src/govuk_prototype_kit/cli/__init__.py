"""Command line interface for the GOV.UK Prototype Kit."""
