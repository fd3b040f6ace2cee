"""
Unit tests for structured names and the HTTPRoute intermediate representation.
"""
import unittest

from hybridgateway import settings
from hybridgateway.intermediate import HashName, Name, build_ir, name_from_route


def route_manifest(**spec):
    return {
        'apiVersion': 'gateway.networking.k8s.io/v1',
        'kind': 'HTTPRoute',
        'metadata': {'namespace': 'default', 'name': 'echo'},
        'spec': spec,
    }


class NameTest(unittest.TestCase):

    def test_str(self):
        name = Name('http', 'default', 'echo', [0, 1, 2])
        self.assertEqual(str(name), 'http.default.echo.0.1.2')
        self.assertEqual(name.parent_ref_index, 0)
        self.assertEqual(name.rule_index, 1)
        self.assertEqual(name.match_index, 2)
        self.assertEqual(name.filter_index, 2)
        self.assertEqual(Name('http', 'default', 'echo').rule_index, -1)

    def test_child_and_truncate(self):
        name = Name('http', 'default', 'echo', [0])
        self.assertEqual(str(name.child(3)), 'http.default.echo.0.3')
        self.assertEqual(name.child(3).truncate(1), name)
        self.assertEqual(len({name, Name('http', 'default', 'echo', [0])}), 1)

    def test_truncation_keeps_indexes(self):
        name = Name('p' * 100, 'n' * 200, 'r' * 200, [1, 12, 7])
        value = str(name)
        self.assertLessEqual(len(value), settings.MAX_NAME_LENGTH)
        self.assertTrue(value.endswith('.1.12.7'))
        self.assertEqual(len(value.split('.')), 6)
        self.assertEqual(value, str(Name('p' * 100, 'n' * 200, 'r' * 200, [1, 12, 7])))

    def test_truncation_gives_short_segments_budget_away(self):
        value = str(Name('http', 'ns', 'r' * 400, [0]))
        self.assertEqual(len(value), settings.MAX_NAME_LENGTH)
        self.assertTrue(value.startswith('http.ns.rrr'))

    def test_dots_in_owner_name_are_kept(self):
        self.assertEqual(str(Name('http', 'default', 'api.v1', [0, 1])), 'http.default.api.v1.0.1')

    def test_hash_name(self):
        self.assertEqual(str(HashName('pl', 'default', 'abcd1234')), 'pl.default.abcd1234')
        value = str(HashName('pl' * 100, 'n' * 300, 'abcd1234'))
        self.assertLessEqual(len(value), settings.MAX_NAME_LENGTH)
        self.assertTrue(value.endswith('.abcd1234'))
        self.assertEqual(len(value.split('.')), 3)


class RepresentationTest(unittest.TestCase):

    def test_build_ir(self):
        route = route_manifest(
            parentRefs=[{'name': 'a'}, {'name': 'b'}],
            rules=[
                {
                    'matches': [{'path': {'value': '/one'}}, {'path': {'value': '/two'}}],
                    'filters': [{'type': 'RequestHeaderModifier'}],
                    'backendRefs': [{'name': 'svc', 'port': 80}],
                },
                {'backendRefs': [{'name': 'other', 'port': 80}]},
            ])
        ir = build_ir(route)
        rules = ir.ordered_rules()
        self.assertEqual([str(rule) for rule in rules], [
            'http.default.echo.0.0', 'http.default.echo.0.1',
            'http.default.echo.1.0', 'http.default.echo.1.1',
        ])
        self.assertEqual(rules[0].ordered_matches(), [
            {'path': {'value': '/one'}}, {'path': {'value': '/two'}}])
        self.assertEqual(rules[0].ordered_filters(), [{'type': 'RequestHeaderModifier'}])
        self.assertEqual(rules[1].ordered_matches(), [])
        self.assertEqual(rules[1].ordered_backend_refs(), [{'name': 'other', 'port': 80}])
        self.assertEqual(ir.get_parent_ref_by_name(rules[2].name), {'name': 'b'})
        self.assertTrue(ir.strip_path)

    def test_rule_order_is_numeric(self):
        route = route_manifest(parentRefs=[{'name': 'a'}], rules=[{}] * 12)
        indexes = [rule.name.rule_index for rule in build_ir(route).ordered_rules()]
        self.assertEqual(indexes, list(range(12)))

    def test_parent_level_lookups(self):
        route = route_manifest(parentRefs=[{'name': 'a'}], rules=[{}])
        ir = build_ir(route)
        ir.add_hostnames(name_from_route(route, 0), ['example.com'])
        rule_name = name_from_route(route, 0, 0)
        self.assertEqual(ir.get_hostnames_by_name(rule_name.child(4)), ['example.com'])
        self.assertIsNone(ir.get_control_plane_ref_by_name(rule_name))
        self.assertIsNone(ir.get_hostnames_by_name(None))
        self.assertIsNone(ir.get_hostnames_by_name(name_from_route(route, 1)))

    def test_strip_path_annotation(self):
        route = route_manifest(parentRefs=[], rules=[])
        route['metadata']['annotations'] = {settings.METADATA['strip-path']: 'false'}
        self.assertFalse(build_ir(route).strip_path)
