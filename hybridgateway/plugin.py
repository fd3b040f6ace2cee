"""
Translate HTTPRoute filters into Kong plugin configurations.

Each supported filter becomes a ``(plugin name, config)`` pair. The config
is a JSON document in the shape the Kong plugin expects; empty buckets are
left out of it.
"""
from hybridgateway.exceptions import (
    ErrEmptyFilterConfig, FilterConfigError, UnsupportedFilterError)

REQUEST_HEADER_MODIFIER = 'RequestHeaderModifier'
RESPONSE_HEADER_MODIFIER = 'ResponseHeaderModifier'
REQUEST_REDIRECT = 'RequestRedirect'
URL_REWRITE = 'URLRewrite'
EXTENSION_REF = 'ExtensionRef'

FULL_PATH = 'ReplaceFullPath'
PREFIX_MATCH = 'ReplacePrefixMatch'
# short spellings of the path modifier types
PATH_MODIFIER_ALIASES = {
    'FullPath': FULL_PATH,
    'PrefixMatch': PREFIX_MATCH,
}

TRANSFORMER_BUCKETS = ('add', 'append', 'remove', 'replace')


def _bucket(config, name):
    return config.setdefault(name, {}).setdefault('headers', [])


def _prune(config):
    """Drop buckets (and header lists) that ended up empty."""
    for name in TRANSFORMER_BUCKETS:
        bucket = config.get(name)
        if bucket is None:
            continue
        if not bucket.get('headers'):
            bucket.pop('headers', None)
        if not bucket:
            del config[name]
    return config


def translate_header_modifier(filter_type, modifier):
    if modifier is None:
        raise ErrEmptyFilterConfig('{} filter config is missing'.format(filter_type))

    config = {}
    # Set overwrites when present and adds otherwise, which takes a
    # replace plus an add in the transformer plugins.
    for header in modifier.get('set') or []:
        value = '{}:{}'.format(header['name'], header['value'])
        _bucket(config, 'replace').append(value)
        _bucket(config, 'add').append(value)
    # Add always adds another instance of the header
    for header in modifier.get('add') or []:
        _bucket(config, 'append').append('{}:{}'.format(header['name'], header['value']))
    for name in modifier.get('remove') or []:
        _bucket(config, 'remove').append(name)

    _prune(config)
    if not config:
        raise ErrEmptyFilterConfig('{} filter config is empty'.format(filter_type))
    return config


def _path_modifier_type(path_modifier):
    path_type = path_modifier.get('type')
    return PATH_MODIFIER_ALIASES.get(path_type, path_type)


def translate_path_replace_full_path(replace_full_path):
    return replace_full_path or '/'


def translate_request_redirect_hostname(redirect):
    hostname = redirect.get('hostname')
    if not hostname:
        return ''
    host = '{}://{}'.format(redirect.get('scheme') or 'http', hostname)
    if redirect.get('port') is not None:
        host += ':{}'.format(redirect['port'])
    return host


def translate_request_redirect_path(redirect):
    path_modifier = redirect.get('path')
    if path_modifier is None:
        return ''

    path_type = _path_modifier_type(path_modifier)
    if path_type == FULL_PATH:
        return translate_path_replace_full_path(path_modifier.get('replaceFullPath'))
    if path_type == PREFIX_MATCH:
        # TODO: the redirect plugin cannot splice the matched prefix, so
        # prefix replacement redirects to the root until it can.
        return '/'
    raise FilterConfigError(
        'unsupported RequestRedirect path modifier type: {}'.format(path_modifier.get('type')))


def translate_request_redirect(redirect):
    if redirect is None:
        raise ErrEmptyFilterConfig('RequestRedirect filter config is missing')

    location_path = translate_request_redirect_path(redirect)
    keep_incoming_path = False
    if location_path == '':
        keep_incoming_path = True
        location_path = '/'

    return {
        'status_code': redirect.get('statusCode') or 302,
        'location': translate_request_redirect_hostname(redirect) + location_path,
        'keep_incoming_path': keep_incoming_path,
    }


def normalize_path(path):
    if not path or path == '/':
        return '/'
    return path[:-1] if path.endswith('/') else path


def translate_path_replace_prefix_match(replace_prefix_match, path):
    """
    Build the runtime template splicing the request path left after the
    matched prefix (``uri_captures[1]``) onto the replacement prefix.
    """
    replace_prefix_match = replace_prefix_match[:-1] if replace_prefix_match.endswith('/') \
        else replace_prefix_match
    path_is_root = path == '/'

    if replace_prefix_match == '':
        # a root match captures the remainder without its leading slash
        if path_is_root:
            return '$(uri_captures[1] == nil and "/" or "/" .. uri_captures[1])'
        return '$(uri_captures[1] == nil and "/" or uri_captures[1])'

    if path_is_root:
        return '{}$(uri_captures[1] == nil and "" or "/" .. uri_captures[1])'.format(
            replace_prefix_match)
    return '{}$(uri_captures[1])'.format(replace_prefix_match)


def path_prefix_match_value(rule):
    """Return the value of the first PathPrefix match of a rule."""
    for match in (rule or {}).get('matches') or []:
        path = match.get('path')
        if path and path.get('type') == 'PathPrefix' and path.get('value') is not None:
            return path['value']
    return ''


def translate_url_rewrite(rewrite, path):
    if rewrite is None:
        raise ErrEmptyFilterConfig('URLRewrite filter config is missing')

    config = {}
    if rewrite.get('hostname') is not None:
        headers = ['host:{}'.format(rewrite['hostname'])]
        config['replace'] = {'headers': list(headers)}
        config['add'] = {'headers': list(headers)}

    path_modifier = rewrite.get('path')
    if path_modifier is not None:
        path_type = _path_modifier_type(path_modifier)
        if path_type == FULL_PATH:
            uri = translate_path_replace_full_path(path_modifier.get('replaceFullPath'))
        elif path_type == PREFIX_MATCH:
            uri = translate_path_replace_prefix_match(
                normalize_path(path_modifier.get('replacePrefixMatch')),
                normalize_path(path))
        else:
            raise FilterConfigError(
                'unsupported URLRewrite path modifier type: {}'.format(path_modifier.get('type')))
        config.setdefault('replace', {})['uri'] = uri

    return config


def uses_prefix_capture(route_filter):
    """Whether a filter needs the matched path suffix as a capture group."""
    for key in ('urlRewrite', 'requestRedirect'):
        path_modifier = ((route_filter or {}).get(key) or {}).get('path')
        if path_modifier and _path_modifier_type(path_modifier) == PREFIX_MATCH:
            return True
    return False


def translate_filter(route_filter, rule=None):
    """
    Translate one HTTPRoute filter into ``(plugin name, config)``.

    ``rule`` is the HTTPRoute rule the filter belongs to, needed to
    rewrite prefix matched paths.
    """
    filter_type = route_filter.get('type')
    try:
        if filter_type == REQUEST_HEADER_MODIFIER:
            return 'request-transformer', translate_header_modifier(
                filter_type, route_filter.get('requestHeaderModifier'))
        if filter_type == RESPONSE_HEADER_MODIFIER:
            return 'response-transformer', translate_header_modifier(
                filter_type, route_filter.get('responseHeaderModifier'))
        if filter_type == REQUEST_REDIRECT:
            return 'redirect', translate_request_redirect(route_filter.get('requestRedirect'))
        if filter_type == URL_REWRITE:
            return 'request-transformer', translate_url_rewrite(
                route_filter.get('urlRewrite'), path_prefix_match_value(rule))
    except FilterConfigError as e:
        raise type(e)('translating {} filter: {}'.format(filter_type, e)) from e

    raise UnsupportedFilterError('unsupported filter type: {}'.format(filter_type))
