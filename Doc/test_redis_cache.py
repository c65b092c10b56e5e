"""
Check that the configured cache works with namespaced keys.

Run this after setting REDIS_URL to verify everything is configured properly:
    python manage.py shell < Doc/test_redis_cache.py
"""
import os
import django

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'fieldmanager.config.settings')
django.setup()

from django.core.cache import cache
from django.conf import settings

from fieldmanager.core.cache_utils import (
    get_namespace_version, invalidate_namespace, make_namespaced_key, uses_redis, VEHICLES_NAMESPACE,
)

print("=" * 60)
print("Cache Check")
print("=" * 60)

print(f"\n1. Cache Backend: {settings.CACHES['default']['BACKEND']}")
print(f"2. Cache Location: {settings.CACHES['default'].get('LOCATION', 'N/A')}")
print(f"3. Redis in use: {uses_redis()}")

print("\n4. Basic operations:")
print("-" * 60)

try:
    cache.set('fieldmanager_check', 'ok', 60)
    if cache.get('fieldmanager_check') == 'ok':
        print("✅ Cache SET/GET: Success")
    else:
        print("❌ Cache SET/GET: Failed")
    cache.delete('fieldmanager_check')
    if cache.get('fieldmanager_check') is None:
        print("✅ Cache DELETE: Success")
    else:
        print("❌ Cache DELETE: Failed")

    print("\n5. Namespace invalidation:")
    print("-" * 60)
    version = get_namespace_version(VEHICLES_NAMESPACE)
    key = make_namespaced_key(VEHICLES_NAMESPACE, 'check', organization_id=0)
    cache.set(key, ['cached'], 60)
    print(f"✅ Cached under {key} (namespace version {version})")

    invalidate_namespace(VEHICLES_NAMESPACE)
    new_key = make_namespaced_key(VEHICLES_NAMESPACE, 'check', organization_id=0)
    if new_key != key and cache.get(new_key) is None:
        print(f"✅ Namespace bumped to version {get_namespace_version(VEHICLES_NAMESPACE)}, old entry unreachable")
    else:
        print("❌ Namespace invalidation did not change the key")
    cache.delete(key)

    print("\n" + "=" * 60)
    print("✅ Cache is working correctly!")
    print("=" * 60)

except Exception as e:
    print(f"\n❌ ERROR: {str(e)}")
    print(f"   Error type: {type(e).__name__}")
    import traceback
    traceback.print_exc()
    print("\n" + "=" * 60)
    print("❌ Cache check failed. Please check:")
    print("   1. REDIS_URL is set correctly in the environment")
    print("   2. django-redis is installed")
    print("   3. Redis is reachable from this host")
    print("=" * 60)
