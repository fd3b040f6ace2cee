from copy import deepcopy

from hybridgateway import settings
from hybridgateway.exceptions import BuildError, OwnerReferenceError
from hybridgateway.metadata import build_annotations, build_labels
from hybridgateway.utils import dict_merge, set_owner_reference


class Builder(object):
    """
    Base of the fluent object builders.

    Setters never raise. Problems are recorded and reported together by
    :meth:`build`, so a chain of setters always runs to the end.
    """
    kind = None
    api_version = 'configuration.konghq.com/v1alpha1'

    def __init__(self):
        self.obj = {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": {},
            "spec": {},
        }
        self.errors = []

    @property
    def spec(self):
        return self.obj["spec"]

    def with_name(self, name):
        self.obj["metadata"]["name"] = name
        return self

    def with_namespace(self, namespace):
        self.obj["metadata"]["namespace"] = namespace
        return self

    def with_labels(self, owner, *args):
        if owner is None:
            self.errors.append(ValueError("owner cannot be nil"))
            return self
        self.obj["metadata"]["labels"] = dict_merge(
            self.obj["metadata"].get("labels", {}), build_labels(owner))
        return self

    def with_annotations(self, route, parent_ref):
        if route is None:
            self.errors.append(ValueError("route cannot be nil"))
            return self
        if parent_ref is None:
            self.errors.append(ValueError("parentRef cannot be nil"))
            return self
        self.obj["metadata"]["annotations"] = dict_merge(
            self.obj["metadata"].get("annotations", {}), build_annotations(route, parent_ref))
        return self

    def with_owner(self, owner):
        if owner is None:
            self.errors.append(ValueError("owner cannot be nil"))
            return self
        try:
            set_owner_reference(owner, self.obj)
        except OwnerReferenceError as e:
            self.errors.append(OwnerReferenceError("failed to set owner reference: {}".format(e)))
        return self

    def with_spec_name(self, name):
        self.spec["name"] = name
        return self

    def with_control_plane_ref(self, cp_ref):
        self.spec["controlPlaneRef"] = deepcopy(cp_ref)
        return self

    def build(self):
        if self.errors:
            raise BuildError(self.errors)
        return deepcopy(self.obj)

    def must_build(self):
        """Build an object from inputs that are already known to be valid."""
        try:
            return self.build()
        except BuildError as e:
            raise RuntimeError("failed to build {}: {}".format(self.kind, e)) from e


def kong_ref(kind, name):
    return {"group": settings.KONG_GROUP, "kind": kind, "name": name}
