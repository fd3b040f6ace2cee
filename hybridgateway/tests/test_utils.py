import unittest

from hybridgateway.exceptions import OwnerReferenceError
from hybridgateway.utils import (
    dict_merge, hostname_intersection, listener_hostnames, remove_owner_reference,
    set_owner_reference, validate_json)

OWNER = {
    'apiVersion': 'gateway.networking.k8s.io/v1',
    'kind': 'HTTPRoute',
    'metadata': {'namespace': 'default', 'name': 'echo', 'uid': 'uid-1'},
}


class TestUtils(unittest.TestCase):

    def test_dict_merge(self):
        a = {'metadata': {'labels': {'a': '1'}}, 'items': [1]}
        b = {'metadata': {'labels': {'b': '2'}}, 'items': [1, 2]}
        self.assertEqual(dict_merge(a, b), {
            'metadata': {'labels': {'a': '1', 'b': '2'}}, 'items': [1, 2]})
        self.assertEqual(a['items'], [1])

    def test_hostname_intersection(self):
        self.assertEqual(hostname_intersection('example.com', 'example.com'), 'example.com')
        self.assertEqual(hostname_intersection('*.example.com', 'foo.example.com'), 'foo.example.com')
        self.assertEqual(hostname_intersection('foo.example.com', '*.example.com'), 'foo.example.com')
        self.assertEqual(hostname_intersection('*.example.com', 'example.com'), '')
        self.assertEqual(hostname_intersection('foo.example.com', 'bar.example.com'), '')

    def test_listener_hostnames(self):
        self.assertEqual(listener_hostnames('', ['a.com']), ['a.com'])
        self.assertEqual(listener_hostnames('*.example.com', []), ['*.example.com'])
        self.assertEqual(
            listener_hostnames('*.example.com', ['a.example.com', 'a.example.com', 'b.org']),
            ['a.example.com'])

    def test_set_owner_reference(self):
        obj = {'metadata': {'namespace': 'default', 'name': 'up'}}
        set_owner_reference(OWNER, obj)
        set_owner_reference(OWNER, obj, controller=True)
        self.assertEqual(obj['metadata']['ownerReferences'], [{
            'apiVersion': 'gateway.networking.k8s.io/v1',
            'kind': 'HTTPRoute',
            'name': 'echo',
            'uid': 'uid-1',
            'controller': True,
            'blockOwnerDeletion': True,
        }])

    def test_set_owner_reference_errors(self):
        with self.assertRaises(OwnerReferenceError):
            set_owner_reference({'metadata': {'name': 'x'}}, {'metadata': {}})
        with self.assertRaises(OwnerReferenceError):
            set_owner_reference(OWNER, {'metadata': {'namespace': 'other', 'name': 'up'}})
        with self.assertRaises(OwnerReferenceError):
            set_owner_reference(OWNER, {'metadata': {'name': 'up'}})

    def test_remove_owner_reference(self):
        obj = {'metadata': {'namespace': 'default', 'name': 'up'}}
        set_owner_reference(OWNER, obj)
        other = dict(OWNER, metadata={'namespace': 'default', 'name': 'other', 'uid': 'uid-2'})
        set_owner_reference(other, obj)
        self.assertTrue(remove_owner_reference(OWNER, obj))
        self.assertEqual([ref['name'] for ref in obj['metadata']['ownerReferences']], ['other'])
        self.assertFalse(remove_owner_reference(OWNER, obj))
        self.assertTrue(remove_owner_reference(other, obj))
        self.assertNotIn('ownerReferences', obj['metadata'])

    def test_validate_json(self):
        schema = {'type': 'array', 'items': {'type': 'string'}}
        self.assertEqual(validate_json(['a'], schema), ['a'])
        self.assertIsNone(validate_json(None, schema))
        with self.assertRaises(OwnerReferenceError):
            validate_json([1], schema, OwnerReferenceError)
