class VpnBypassAgentException(Exception):
    pass


class FirewallControlError(VpnBypassAgentException):
    pass


class ProcessControlError(VpnBypassAgentException):
    pass


class CredentialLookupError(VpnBypassAgentException):
    pass


class MediaServerError(VpnBypassAgentException):
    pass


class SplitTunnelError(VpnBypassAgentException):
    pass
