# flake8: noqa

_HEADER_LIST = {
    "type": "array",
    "items": {"type": "string", "minLength": 1},
}

_TRANSFORMER_BUCKET = {
    "type": "object",
    "properties": {
        "headers": _HEADER_LIST,
    },
    "additionalProperties": False,
}

TRANSFORMER_CONFIG_SCHEMA = {
    "description": "Configuration of the request-transformer and response-transformer plugins.",
    "type": "object",
    "properties": {
        "add": _TRANSFORMER_BUCKET,
        "append": _TRANSFORMER_BUCKET,
        "remove": _TRANSFORMER_BUCKET,
        "replace": {
            "type": "object",
            "properties": {
                "headers": _HEADER_LIST,
                "uri": {"type": "string", "minLength": 1},
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": False,
}

REDIRECT_CONFIG_SCHEMA = {
    "description": "Configuration of the redirect plugin.",
    "type": "object",
    "properties": {
        "status_code": {"type": "integer", "minimum": 300, "maximum": 399},
        "location": {"type": "string", "minLength": 1},
        "keep_incoming_path": {"type": "boolean"},
    },
    "required": ["status_code", "location", "keep_incoming_path"],
    "additionalProperties": False,
}

PLUGIN_CONFIG_SCHEMAS = {
    "request-transformer": TRANSFORMER_CONFIG_SCHEMA,
    "response-transformer": TRANSFORMER_CONFIG_SCHEMA,
    "redirect": REDIRECT_CONFIG_SCHEMA,
}

_HTTP_HEADER = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "minLength": 1, "maxLength": 256},
        "value": {"type": "string", "maxLength": 4096},
    },
    "required": ["name", "value"],
}

_HEADER_FILTER = {
    "type": "object",
    "properties": {
        "set": {"type": "array", "items": _HTTP_HEADER, "maxItems": 16},
        "add": {"type": "array", "items": _HTTP_HEADER, "maxItems": 16},
        "remove": {"type": "array", "items": {"type": "string"}, "maxItems": 16},
    },
}

_PATH_MODIFIER = {
    "type": "object",
    "properties": {
        "type": {"type": "string"},
        "replaceFullPath": {"type": "string", "maxLength": 1024},
        "replacePrefixMatch": {"type": "string", "maxLength": 1024},
    },
    "required": ["type"],
}

HTTPROUTE_RULES_SCHEMA = {
    "description": "Rules are a list of HTTP matchers, filters and actions.",
    "type": "array",
    "maxItems": 16,
    "items": {
        "type": "object",
        "properties": {
            "matches": {
                "type": "array",
                "maxItems": 64,
                "items": {
                    "type": "object",
                    "properties": {
                        "path": {
                            "type": "object",
                            "properties": {
                                "type": {"enum": ["Exact", "PathPrefix", "RegularExpression"]},
                                "value": {"type": "string", "maxLength": 1024},
                            },
                        },
                        "headers": {
                            "type": "array",
                            "maxItems": 16,
                            "items": {
                                "type": "object",
                                "properties": {
                                    "type": {"enum": ["Exact", "RegularExpression"]},
                                    "name": {"type": "string", "minLength": 1},
                                    "value": {"type": "string", "maxLength": 4096},
                                },
                                "required": ["name", "value"],
                            },
                        },
                        "method": {
                            "enum": ["GET", "HEAD", "POST", "PUT", "DELETE",
                                     "CONNECT", "OPTIONS", "TRACE", "PATCH"],
                        },
                    },
                },
            },
            "filters": {
                "type": "array",
                "maxItems": 16,
                "items": {
                    "type": "object",
                    "properties": {
                        "type": {"type": "string"},
                        "requestHeaderModifier": _HEADER_FILTER,
                        "responseHeaderModifier": _HEADER_FILTER,
                        "requestRedirect": {
                            "type": "object",
                            "properties": {
                                "scheme": {"enum": ["http", "https"]},
                                "hostname": {"type": "string"},
                                "port": {"type": "integer", "minimum": 1, "maximum": 65535},
                                "statusCode": {"type": "integer"},
                                "path": _PATH_MODIFIER,
                            },
                        },
                        "urlRewrite": {
                            "type": "object",
                            "properties": {
                                "hostname": {"type": "string"},
                                "path": _PATH_MODIFIER,
                            },
                        },
                        "extensionRef": {
                            "type": "object",
                            "properties": {
                                "group": {"type": "string"},
                                "kind": {"type": "string"},
                                "name": {"type": "string", "minLength": 1},
                            },
                            "required": ["group", "kind", "name"],
                        },
                    },
                    "required": ["type"],
                },
            },
            "backendRefs": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "group": {"type": "string"},
                        "kind": {"type": "string"},
                        "name": {"type": "string", "minLength": 1},
                        "namespace": {"type": "string"},
                        "port": {"type": "integer", "minimum": 1, "maximum": 65535},
                        "weight": {"type": "integer", "minimum": 0, "maximum": 1000000},
                    },
                    "required": ["name"],
                },
            },
        },
    },
}
