from shared.helper.HelperConfig import HelperConfig
from shared.stores.ContentStoreInterface import ContentStoreInterface
from shared.stores.CredentialStoreInterface import CredentialStoreInterface
from shared.stores.TenantStoreInterface import TenantStoreInterface


class StoreManager:
    """
    Manager class to instantiate the configured storage engines.

    CONTENT_STORE_ENGINE selects the content store (memory | qdrant).
    DIRECTORY_STORE_ENGINE selects the tenant and credential stores (memory | file).
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        content_engine = self._get_engine_from_env("CONTENT_STORE_ENGINE", default="memory")
        directory_engine = self._get_engine_from_env("DIRECTORY_STORE_ENGINE", default="memory")
        self.content_store: ContentStoreInterface = self._initialize_store("ContentStore", content_engine)
        self.tenant_store: TenantStoreInterface = self._initialize_store("TenantStore", directory_engine)
        self.credential_store: CredentialStoreInterface = self._initialize_store("CredentialStore", directory_engine)

    def _get_engine_from_env(self, key: str, default: str) -> str:
        """
        Reads a store engine name from ENV configuration.

        Returns:
            str: The engine name, capitalised (e.g. "Qdrant").
        """
        engine = self.helper_config.get_string_val(key, default=default)
        if not engine:
            raise ValueError(f"No store engine specified in {key}.")
        return engine.strip().lower().capitalize()

    def _initialize_store(self, kind: str, engine: str):
        """
        Imports and instantiates shared.stores.<engine>.<kind><Engine>.

        Raises:
            ValueError: If the engine does not provide this kind of store.
        """
        className = f"{kind}{engine}"
        try:
            module = __import__(
                f"shared.stores.{engine.lower()}.{className}",
                fromlist=[className],
            )
            store_class = getattr(module, className)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported {kind} engine specified: '{engine}'. Error: {e}")

        store = store_class(helper_config=self.helper_config)
        self.logging.debug(f"Instantiated {kind} for engine: {engine}")
        return store

    async def boot(self) -> None:
        await self.content_store.boot()
        await self.tenant_store.boot()
        await self.credential_store.boot()

    async def close(self) -> None:
        await self.content_store.close()
        await self.tenant_store.close()
        await self.credential_store.close()
