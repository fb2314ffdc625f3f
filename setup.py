#!/usr/bin/env python3
"""
Setup shim for optimizectl.

All metadata lives in pyproject.toml; this file only exists for tooling that
still invokes ``setup.py`` directly.
"""

from setuptools import setup

setup()
