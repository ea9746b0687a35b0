__title__ = "vpn_bypass_agent"
__description__ = (
    "Background reconcilers that keep a media server's traffic outside a VPN tunnel "
    "and a bind-sensitive application's traffic inside it."
)
__url__ = "https://github.com/vpn-bypass-agent/vpn-bypass-agent"
__author__ = "VPN Bypass Agent contributors"
__version__ = "1.0.0-1"
__status__ = "alpha"
__license__ = "BSD-3-Clause"
__license_url__ = "https://opensource.org/licenses/BSD-3-Clause"
