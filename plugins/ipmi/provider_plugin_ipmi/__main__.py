import sys

from provider_plugin_ipmi import IpmiProviderPlugin


def main() -> None:
    sys.exit(IpmiProviderPlugin.main())


if __name__ == "__main__":
    main()
