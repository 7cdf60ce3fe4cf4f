from shared.exceptions import ConfigurationError
from shared.helper.HelperConfig import HelperConfig
from shared.clients.rag.RAGClientInterface import RAGClientInterface


class RAGClientManager:
    """
    Manager class to handle multiple RAG clients based on configuration.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.clients = self._initialize_clients()

    def _get_engines_from_env(self) -> list[str]:
        """
        Reads the list of RAG engines from ENV configuration.

        Returns:
            list[str]: A list of RAG engine names.

        Raises:
            ConfigurationError: If no RAG engines are specified in the configuration.
        """
        engines = self.helper_config.get_list_val("RAG_ENGINES")
        if not engines:
            raise ConfigurationError("No RAG engines specified in configuration (RAG_ENGINES).")

        # lowercase all and uppercase first letter for class lookup
        return [engine.strip().lower().capitalize() for engine in engines]

    def _initialize_clients(self) -> list[RAGClientInterface]:
        """
        Initializes RAG clients based on the engines specified in the configuration.

        Returns:
            list[RAGClientInterface]: A list of instances of RAG clients that implement the RAGClientInterface.

        Raises:
            ConfigurationError: If an engine is unsupported.
        """
        clients = []
        for engine in self._get_engines_from_env():
            className = f"RAGClient{engine}"
            try:
                module = __import__(
                    f"shared.clients.rag.{engine.lower()}.{className}",
                    fromlist=[className],
                )
                client_class = getattr(module, className)
            except (ImportError, AttributeError) as e:
                raise ConfigurationError(f"Unsupported RAG engine specified: '{engine}'. Error: {e}")
            clients.append(client_class(helper_config=self.helper_config))
            self.logging.debug("Instantiated RAG client for engine: %s", engine)
        return clients

    def get_clients(self) -> list[RAGClientInterface]:
        """
        Returns the list of instantiated RAG clients.
        """
        return self.clients
