"""
Unit tests for labels, annotations and the hybrid-routes backreference set.
"""
import unittest

from hybridgateway import settings
from hybridgateway.metadata import (
    AnnotationManager, build_annotations, build_labels, routes_annotation, strip_path)

ROUTES = settings.METADATA['hybrid-routes']


def route(name, namespace='default'):
    return {'kind': 'HTTPRoute', 'metadata': {'namespace': namespace, 'name': name}}


class AnnotationManagerTest(unittest.TestCase):

    def setUp(self):
        self.obj = {'metadata': {'name': 'upstream', 'namespace': 'default'}}

    def test_append_is_idempotent(self):
        self.assertTrue(routes_annotation.append_route(self.obj, route('a')))
        self.assertFalse(routes_annotation.append_route(self.obj, route('a')))
        self.assertEqual(self.obj['metadata']['annotations'][ROUTES], 'default/a')

    def test_append_then_remove_converges(self):
        routes_annotation.append_route(self.obj, route('a'))
        routes_annotation.append_route(self.obj, route('b'))
        self.assertTrue(routes_annotation.remove_route(self.obj, route('a')))
        self.assertEqual(routes_annotation.get_routes(self.obj), ['default/b'])

        self.assertTrue(routes_annotation.remove_route(self.obj, route('b')))
        self.assertNotIn(ROUTES, self.obj['metadata']['annotations'])

    def test_remove_missing_route_changes_nothing(self):
        self.assertFalse(routes_annotation.remove_route(self.obj, route('a')))
        self.assertNotIn('annotations', self.obj['metadata'])

        routes_annotation.append_route(self.obj, route('a'))
        self.assertFalse(routes_annotation.remove_route(self.obj, route('z')))
        self.assertEqual(routes_annotation.get_routes(self.obj), ['default/a'])

    def test_routes_are_kept_sorted(self):
        for name in ('c', 'a', 'b'):
            routes_annotation.append_route(self.obj, route(name))
        self.assertEqual(self.obj['metadata']['annotations'][ROUTES], 'default/a,default/b,default/c')

    def test_set_routes(self):
        self.assertTrue(routes_annotation.set_routes(self.obj, ['x/b', 'x/a', 'x/a']))
        self.assertEqual(routes_annotation.get_routes(self.obj), ['x/a', 'x/b'])
        self.assertFalse(routes_annotation.set_routes(self.obj, ['x/b', 'x/a']))
        self.assertTrue(routes_annotation.set_routes(self.obj, []))
        self.assertFalse(routes_annotation.set_routes(self.obj, []))

    def test_contains_route(self):
        self.obj['metadata']['annotations'] = {ROUTES: 'default/a, other/b'}
        self.assertTrue(routes_annotation.contains_route(self.obj, 'other/b'))
        self.assertTrue(routes_annotation.contains_route(self.obj, route('a')))
        self.assertFalse(routes_annotation.contains_route(self.obj, route('b')))

    def test_other_key(self):
        manager = AnnotationManager('example.com/owners')
        manager.append_route(self.obj, 'ns/gw')
        self.assertEqual(self.obj['metadata']['annotations'], {'example.com/owners': 'ns/gw'})


class MetadataTest(unittest.TestCase):

    def test_labels(self):
        labels = build_labels(route('echo', 'apps'))
        self.assertEqual(labels, {
            settings.METADATA['managed-by']: 'httproute',
            settings.METADATA['managed-by-name']: 'echo',
            settings.METADATA['managed-by-namespace']: 'apps',
        })

    def test_annotations(self):
        annotations = build_annotations(route('echo', 'apps'), {'name': 'gw'})
        self.assertEqual(annotations[ROUTES], 'apps/echo')
        self.assertEqual(annotations[settings.METADATA['hybrid-gateways']], 'apps/gw')
        annotations = build_annotations(route('echo', 'apps'), {'name': 'gw', 'namespace': 'infra'})
        self.assertEqual(annotations[settings.METADATA['hybrid-gateways']], 'infra/gw')

    def test_strip_path(self):
        key = settings.METADATA['strip-path']
        self.assertTrue(strip_path(None))
        self.assertTrue(strip_path({key: 'true'}))
        self.assertTrue(strip_path({key: 'nonsense'}))
        self.assertFalse(strip_path({key: 'False'}))
        self.assertFalse(strip_path({key: '0'}))
