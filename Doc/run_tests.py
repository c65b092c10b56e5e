#!/usr/bin/env python
"""
Test runner script for the full Pro Field Manager suite
Usage: python Doc/run_tests.py [app ...]
"""
import os
import sys
import django
from django.conf import settings
from django.test.utils import get_runner

APPS = [
    'fieldmanager.core',
    'fieldmanager.crm',
    'fieldmanager.fleet',
    'fieldmanager.expenses',
    'fieldmanager.scheduling',
    'fieldmanager.files',
    'fieldmanager.marketing',
    'fieldmanager.reports',
    'fieldmanager.callmanager',
    'fieldmanager.techinventory',
    'fieldmanager.tutorials',
]

if __name__ == "__main__":
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'fieldmanager.config.settings')
    django.setup()
    TestRunner = get_runner(settings)
    test_runner = TestRunner()
    labels = [f'fieldmanager.{name}' for name in sys.argv[1:]] or APPS
    failures = test_runner.run_tests(labels)
    sys.exit(bool(failures))
