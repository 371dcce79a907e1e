"""Migration steps, one module per step.

The execution order is declared in :mod:`govuk_prototype_kit.upgrade.registry`.
"""
