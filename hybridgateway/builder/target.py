from hybridgateway import settings
from hybridgateway.builder.base import Builder


def target_address(host, port):
    if ":" in host:
        return "[{}]:{}".format(host, port)
    return "{}:{}".format(host, port)


class KongTargetBuilder(Builder):
    kind = "KongTarget"

    def with_target(self, host, port):
        self.spec["target"] = target_address(host, port)
        return self

    def with_weight(self, weight):
        self.spec["weight"] = settings.DEFAULT_TARGET_WEIGHT if weight is None else weight
        return self

    def with_upstream_ref(self, name):
        self.spec["upstreamRef"] = {"name": name}
        return self

    def build(self):
        self.spec.setdefault("weight", settings.DEFAULT_TARGET_WEIGHT)
        return super().build()
