from hybridgateway.builder.base import Builder
from hybridgateway.metadata import build_gateway_annotations


class GatewayBuilder(Builder):
    """Builders for objects owned by a Gateway rather than an HTTPRoute."""

    def with_annotations(self, gateway, *args):
        if gateway is None:
            self.errors.append(ValueError("gateway cannot be nil"))
            return self
        annotations = self.obj["metadata"].setdefault("annotations", {})
        annotations.update(build_gateway_annotations(gateway))
        return self


class KongCertificateBuilder(GatewayBuilder):
    kind = "KongCertificate"

    def with_secret_ref(self, name, namespace=None):
        self.spec["type"] = "secretRef"
        self.spec["secretRef"] = {"name": name}
        if namespace:
            self.spec["secretRef"]["namespace"] = namespace
        return self


class KongSNIBuilder(GatewayBuilder):
    kind = "KongSNI"

    def with_sni_name(self, hostname):
        self.spec["name"] = hostname
        return self

    def with_certificate_ref(self, name):
        self.spec["certificateRef"] = {"name": name}
        return self
