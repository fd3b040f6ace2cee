"""
Helper functions used by the hybrid gateway translator.
"""
from copy import deepcopy

import jsonschema

from hybridgateway.exceptions import OwnerReferenceError


def dict_merge(origin, merge):
    """
    Recursively merges dict's. not just simple a["key"] = b["key"], if
    both a and b have a key who's value is a dict then dict_merge is called
    on both values and the result stored in the returned dictionary.
    Also handles merging lists if they occur within the dict
    """
    if not isinstance(merge, dict):
        return merge

    result = deepcopy(origin)
    for key, value in merge.items():
        if key in result and isinstance(result[key], dict):
            result[key] = dict_merge(result[key], value)
        else:
            if isinstance(value, list):
                if key not in result:
                    result[key] = deepcopy(value)
                else:
                    # merge lists without leaving potential duplicates
                    for item in value:
                        if item in result[key]:
                            continue

                        result[key].append(deepcopy(item))
            else:
                result[key] = deepcopy(value)
    return result


def object_key(obj):
    """Return the "namespace/name" identity of a kubernetes object."""
    metadata = obj.get("metadata", {})
    return "{}/{}".format(metadata.get("namespace", ""), metadata.get("name", ""))


def api_group(api_version):
    return api_version.split("/")[0] if "/" in api_version else ""


def set_owner_reference(owner, obj, controller=False):
    """
    Add (or refresh) an owner reference to ``owner`` on ``obj``.

    Mirrors the API server rules: a namespaced owner can only own objects
    of its own namespace, and never a cluster-scoped object.
    """
    owner_meta = owner.get("metadata", {})
    if not owner.get("apiVersion") or not owner.get("kind"):
        raise OwnerReferenceError(
            "owner {} is missing apiVersion or kind".format(owner_meta.get("name")))
    owner_ns = owner_meta.get("namespace", "")
    obj_meta = obj.setdefault("metadata", {})
    obj_ns = obj_meta.get("namespace", "")
    if owner_ns:
        if not obj_ns:
            raise OwnerReferenceError(
                "cluster-scoped resource must not have a namespace-scoped owner, "
                "owner's namespace {}".format(owner_ns))
        if owner_ns != obj_ns:
            raise OwnerReferenceError(
                "cross-namespace owner references are disallowed, owner's namespace {}, "
                "obj's namespace {}".format(owner_ns, obj_ns))

    ref = {
        "apiVersion": owner["apiVersion"],
        "kind": owner["kind"],
        "name": owner_meta.get("name"),
        "uid": owner_meta.get("uid", ""),
    }
    if controller:
        ref["controller"] = True
        ref["blockOwnerDeletion"] = True

    refs = obj_meta.setdefault("ownerReferences", [])
    for index, existing in enumerate(refs):
        if (api_group(existing.get("apiVersion", "")) == api_group(ref["apiVersion"]) and
                existing.get("kind") == ref["kind"] and existing.get("name") == ref["name"]):
            refs[index] = ref
            break
    else:
        refs.append(ref)
    return obj


def _wildcard_matches(wildcard, hostname):
    suffix = wildcard[1:]
    return hostname.endswith(suffix) and len(hostname) > len(suffix)


def hostname_intersection(listener_hostname, route_hostname):
    """
    Return the hostname matched by both a listener and a route hostname.

    Either side may be a "*." wildcard. The more specific of the two is
    returned, or an empty string when they do not intersect.
    """
    if listener_hostname == route_hostname:
        return route_hostname
    if listener_hostname.startswith("*.") and _wildcard_matches(listener_hostname, route_hostname):
        return route_hostname
    if route_hostname.startswith("*.") and _wildcard_matches(route_hostname, listener_hostname):
        return listener_hostname
    return ""


def listener_hostnames(listener_hostname, route_hostnames):
    """Hostnames a route ends up serving through a single listener."""
    if not listener_hostname:
        return list(route_hostnames)
    if not route_hostnames:
        return [listener_hostname]

    hostnames = []
    for hostname in route_hostnames:
        matched = hostname_intersection(listener_hostname, hostname)
        if matched and matched not in hostnames:
            hostnames.append(matched)
    return hostnames


def validate_json(value, schema, raise_exception=ValueError):
    if value is not None:
        try:
            jsonschema.validate(value, schema)
        except jsonschema.ValidationError as e:
            raise raise_exception("could not validate {}: {}".format(value, e.message))
    return value


def remove_owner_reference(owner, obj):
    """Drop the owner reference to ``owner``, returning whether one was removed."""
    uid = owner.get("metadata", {}).get("uid")
    name = owner.get("metadata", {}).get("name")
    refs = obj.get("metadata", {}).get("ownerReferences") or []
    kept = [
        ref for ref in refs
        if not (ref.get("kind") == owner.get("kind") and
                (ref.get("uid") == uid if uid else ref.get("name") == name))
    ]
    if len(kept) == len(refs):
        return False
    if kept:
        obj["metadata"]["ownerReferences"] = kept
    else:
        del obj["metadata"]["ownerReferences"]
    return True
