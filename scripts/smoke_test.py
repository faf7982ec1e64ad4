"""Exercise a running registry through the client.

    REGISTRY_API_URL=http://localhost:8000/exec ADMIN_PASSWORD=... python scripts/smoke_test.py
"""
import os
import sys

repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

from student_registry.client.config import ClientConfig, build_client  # noqa: E402
from student_registry.errors import RegistryError  # noqa: E402
from student_registry.utils.logs import setup_logging  # noqa: E402

config = ClientConfig.from_env()
setup_logging(config.log_level)


def main(client):
    if not client.api.is_configured():
        print('REGISTRY_API_URL is not set; nothing to do')
        return 1

    user = client.session.login(os.getenv('ADMIN_USERNAME', 'admin'), os.getenv('ADMIN_PASSWORD', ''))
    print('Logged in:', bool(user))

    try:
        added = client.students.add_student({
            'name': 'Smoke Test',
            'fatherName': 'Smoke Parent',
            'email': 'smoke@example.com',
            'phone': '5550000000',
            'course': 'B.Sc',
            'semester': '1',
            'rollNo': 'SMOKE-1',
        })
        print('Added:', added['student']['id'])
    except RegistryError as e:
        print('Add failed:', e.message)

    students = client.students.load_students()
    print('Students:', len(students))
    client.students.load_students()
    print('Cache:', client.cache.get_stats()['total'], 'entries')

    for s in client.students.search_students('SMOKE', students):
        print('Card lookup:', client.students.get_student(s['id'])['name'])
        client.students.delete_student(s['id'])
        print('Deleted:', s['id'])

    client.session.logout()
    return 0


# the client owns a worker pool; leave the block to shut it down
with build_client(config) as client:
    code = main(client)
sys.exit(code)
