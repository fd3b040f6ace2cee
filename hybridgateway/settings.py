"""
Runtime configuration for the hybrid gateway translator.

Values are read once from the environment when the module is imported.
"""
import os
from types import MappingProxyType

K8S_API_URL = os.environ.get(
    'K8S_API_URL',
    'https://{}:{}'.format(
        os.environ.get('KUBERNETES_SERVICE_HOST', 'kubernetes.default.svc'),
        os.environ.get('KUBERNETES_SERVICE_PORT', '443'),
    )
)
K8S_API_VERIFY_TLS = os.environ.get('K8S_API_VERIFY_TLS', 'true').lower() == 'true'
K8S_TOKEN_FILE = os.environ.get(
    'K8S_TOKEN_FILE', '/var/run/secrets/kubernetes.io/serviceaccount/token')
K8S_CA_FILE = os.environ.get(
    'K8S_CA_FILE', '/var/run/secrets/kubernetes.io/serviceaccount/ca.crt')

# GatewayClasses whose controllerName differs are ignored
CONTROLLER_NAME = os.environ.get(
    'HYBRID_GATEWAY_CONTROLLER_NAME', 'konghq.com/gateway-operator')

# address Services by their cluster DNS name instead of endpoint IPs
FQDN_MODE = os.environ.get('HYBRID_GATEWAY_FQDN_MODE', 'false').lower() == 'true'
CLUSTER_DOMAIN = os.environ.get('HYBRID_GATEWAY_CLUSTER_DOMAIN', '')

# kubernetes object names are DNS subdomains
MAX_NAME_LENGTH = 253
NAMEGEN_PREFIX = 'hgw'

DEFAULT_TARGET_WEIGHT = 100
MAX_TARGET_WEIGHT = 65535

KONG_GROUP = 'configuration.konghq.com'
GATEWAY_GROUP = 'gateway.networking.k8s.io'

METADATA = MappingProxyType({
    'managed-by': 'gateway-operator.konghq.com/managed-by',
    'managed-by-name': 'gateway-operator.konghq.com/managed-by-name',
    'managed-by-namespace': 'gateway-operator.konghq.com/managed-by-namespace',
    'hybrid-routes': 'gateway-operator.konghq.com/hybrid-routes',
    'hybrid-gateways': 'gateway-operator.konghq.com/hybrid-gateways',
    'strip-path': 'konghq.com/strip-path',
    'service-name': 'kubernetes.io/service-name',
})

MANAGED_BY = MappingProxyType({
    'HTTPRoute': 'httproute',
    'Gateway': 'gateway',
})
