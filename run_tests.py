#!/usr/bin/env python
"""
Test runner script for the marketplace apps
Usage: python run_tests.py [app ...]
"""
import os
import sys
import django
from django.conf import settings
from django.test.utils import get_runner

APPS = [
    'marketplace.core',
    'marketplace.profiles',
    'marketplace.catalog',
    'marketplace.orders',
    'marketplace.support',
]

if __name__ == "__main__":
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'marketplace.config.settings')
    django.setup()
    TestRunner = get_runner(settings)
    test_runner = TestRunner()
    labels = [f'marketplace.{name}' if '.' not in name else name for name in sys.argv[1:]] or APPS
    failures = test_runner.run_tests(labels)
    sys.exit(bool(failures))
