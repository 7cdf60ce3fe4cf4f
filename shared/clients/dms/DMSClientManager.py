from shared.exceptions import ConfigurationError
from shared.helper.HelperConfig import HelperConfig
from shared.clients.dms.DMSClientInterface import DMSClientInterface


class DMSClientManager:
    """Manager class to instantiate the configured DMS client."""

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """Read the DMS engine name from env configuration.

        Returns:
            str: Capitalised engine name (e.g. "Notion").

        Raises:
            ConfigurationError: If DMS_ENGINE is not set or empty.
        """
        engine = self.helper_config.get_string_val("DMS_ENGINE")
        if not engine:
            raise ConfigurationError("No DMS engine specified in configuration (DMS_ENGINE).")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> DMSClientInterface:
        """Instantiate the DMS client for the configured engine.

        Returns:
            DMSClientInterface: The instantiated client.

        Raises:
            ConfigurationError: If the engine is unsupported or its required settings are missing.
        """
        engine = self._get_engine_from_env()
        class_name = f"DMSClient{engine}"
        try:
            module = __import__(
                f"shared.clients.dms.{engine.lower()}.{class_name}",
                fromlist=[class_name],
            )
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ConfigurationError(f"Unsupported DMS engine '{engine}'. Error: {e}")
        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated DMS client for engine: %s", engine)
        return client

    def get_client(self) -> DMSClientInterface:
        """Return the instantiated DMS client."""
        return self.client
