"""Routing core: completion, registration, scheduling and host interfaces.

Import from the submodules (``sancf.core.registrar`` and so on); the
dispatcher itself lives in the top-level ``command_dispatcher`` module.
"""
