from hybridgateway.builder.base import Builder

PATH_REGEX_PREFIX = "~"
HEADER_REGEX_PREFIX = "~*"


def generate_paths(path_match, capture_group=False):
    """
    Translate an HTTPRoute path match into KongRoute paths.

    A plain KongRoute path matches any request path it prefixes, and a path
    starting with "~" is a regex anchored at the start only.
    """
    match_type = path_match.get("type") or "PathPrefix"
    value = path_match["value"]

    if match_type == "Exact":
        return [PATH_REGEX_PREFIX + value + "$"]

    if match_type == "PathPrefix":
        if value == "/" and not capture_group:
            return ["/"]

        # "/abc" must match "/abc" and "/abc/..." but never "/abcd"
        paths = ["{}{}$".format(PATH_REGEX_PREFIX, value)]
        if capture_group:
            # a KongRoute path has to start with "/" so it stays outside the group
            if value == "/":
                return paths + ["{}/(.*)".format(PATH_REGEX_PREFIX)]
            return paths + ["{}{}(/.*)".format(PATH_REGEX_PREFIX, value)]

        if not value.endswith("/"):
            value += "/"
        return paths + [value]

    if match_type == "RegularExpression":
        return [PATH_REGEX_PREFIX + value]

    return []


class KongRouteBuilder(Builder):
    kind = "KongRoute"

    def with_hosts(self, hosts):
        if hosts:
            self.spec.setdefault("hosts", []).extend(hosts)
        return self

    def with_http_route_match(self, match, capture_group=False):
        path = match.get("path")
        if path and path.get("value") is not None:
            self.spec.setdefault("paths", []).extend(generate_paths(path, capture_group))

        if match.get("method"):
            self.spec.setdefault("methods", []).append(match["method"])

        for header in match.get("headers") or []:
            value = header["value"]
            if header.get("type") == "RegularExpression":
                value = HEADER_REGEX_PREFIX + value
            self.spec.setdefault("headers", {}).setdefault(header["name"], []).append(value)
        # query params have no KongRoute counterpart
        return self

    def with_kong_service(self, name):
        if name:
            self.spec["serviceRef"] = {
                "type": "namespacedRef",
                "namespacedRef": {"name": name},
            }
        return self

    def with_strip_path(self, strip_path):
        self.spec["strip_path"] = strip_path
        return self
