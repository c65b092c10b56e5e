#!/usr/bin/env python
"""
Quick validation script to check that every test module imports
"""
import importlib
import os
import sys
import django

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'fieldmanager.config.settings')
django.setup()

TEST_CLASSES = [
    ('fieldmanager.core.test_utils', 'TestDataFactory'),
    ('fieldmanager.core.tests', 'RegistrationTests'),
    ('fieldmanager.crm.tests', 'InvoiceAPITests'),
    ('fieldmanager.fleet.tests', 'ServiceDueTests'),
    ('fieldmanager.expenses.tests', 'ExpenseAPITests'),
    ('fieldmanager.scheduling.tests', 'CalendarGridTests'),
    ('fieldmanager.files.tests', 'PermissionResolutionTests'),
    ('fieldmanager.marketing.tests', 'PublicPopupTests'),
    ('fieldmanager.reports.tests', 'AggregationTests'),
    ('fieldmanager.callmanager.tests', 'ProvisionPhoneTests'),
    ('fieldmanager.techinventory.tests', 'DailyVerificationAPITests'),
    ('fieldmanager.tutorials.tests', 'TutorialProgressTests'),
]


def validate_imports():
    """Validate that all test imports work"""
    print("Validating test imports...")
    for module_name, class_name in TEST_CLASSES:
        try:
            getattr(importlib.import_module(module_name), class_name)
            print(f"✅ {module_name}.{class_name}")
        except Exception as e:
            print(f"❌ Failed to import {module_name}.{class_name}: {e}")
            return False

    print("\n✅ All test imports validated successfully!")
    return True


if __name__ == '__main__':
    success = validate_imports()
    sys.exit(0 if success else 1)
