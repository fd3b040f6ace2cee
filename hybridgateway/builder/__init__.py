from hybridgateway.builder.certificate import KongCertificateBuilder, KongSNIBuilder  # noqa
from hybridgateway.builder.plugin import KongPluginBuilder  # noqa
from hybridgateway.builder.pluginbinding import KongPluginBindingBuilder  # noqa
from hybridgateway.builder.route import KongRouteBuilder, generate_paths  # noqa
from hybridgateway.builder.service import KongServiceBuilder  # noqa
from hybridgateway.builder.target import KongTargetBuilder, target_address  # noqa
from hybridgateway.builder.upstream import KongUpstreamBuilder  # noqa
