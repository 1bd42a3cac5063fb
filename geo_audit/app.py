"""Application orchestrator: wires config, storage, the audit pipeline and WordPress."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from geo_audit.modules.schema_audit import events
from geo_audit.modules.schema_audit.events import EventSink, LoggingEventSink, emit
from geo_audit.modules.schema_audit.types import AuditAnalysis, WebsiteTarget, check_language

logger = logging.getLogger(__name__)


@dataclass
class PostAuditResult:
    """Outcome of auditing one WordPress post."""

    integration_id: int
    post_id: int
    post_title: str
    post_url: str
    analysis: AuditAnalysis
    generated_schema: dict
    audit_id: Optional[int] = None


class GeoAuditApp:
    """Central application class.

    Usage::

        app = GeoAuditApp()
        app.initialize()
        analysis, audit = await app.audit_website("https://example.com")
    """

    def __init__(
        self,
        config_path: str = "config/settings.yaml",
        env_path: str = ".env",
        llm_client: Any = None,
        event_sink: Optional[EventSink] = None,
        wordpress_transport: Any = None,
        user_id: Optional[str] = None,
    ):
        self._config_path = config_path
        self._env_path = env_path
        self.config: dict[str, Any] = {}
        self._initialized = False
        self._llm_client = llm_client
        self._pipeline = None
        self._store = None
        self._generator = None
        self._events = event_sink or LoggingEventSink()
        self._wp_transport = wordpress_transport
        self._user_id = user_id

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Load environment and configuration, then create the database."""
        if self._initialized:
            return

        env_file = Path(self._env_path)
        if env_file.exists():
            load_dotenv(env_file)
            logger.info("Loaded environment from %s", self._env_path)

        self.config = self._load_config()
        check_language(self.language)

        from geo_audit.database import init_db
        db_cfg = self.config.get("database", {})
        init_db(database_url=db_cfg.get("url"), echo=db_cfg.get("echo", False))

        self._initialized = True
        logger.info("GeoAuditApp initialised.")

    def _load_config(self) -> dict[str, Any]:
        config_file = Path(self._config_path)
        if not config_file.exists():
            logger.warning("Config file not found: %s - using defaults.", self._config_path)
            return {}
        with open(config_file, "r", encoding="utf-8") as fh:
            config = yaml.safe_load(fh) or {}
        logger.info("Configuration loaded from %s", self._config_path)
        return config

    @property
    def language(self) -> str:
        return self.config.get("app", {}).get("language", "vi")

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError("Call initialize() before using the application.")

    # ------------------------------------------------------------------
    # Lazy components
    # ------------------------------------------------------------------

    def _get_llm_client(self):
        if self._llm_client is None:
            from geo_audit.integrations.llm_client import LLMClient
            llm_cfg = self.config.get("llm", {})
            self._llm_client = LLMClient(
                timeout=llm_cfg.get("timeout", 30),
                base_url=llm_cfg.get("base_url"),
            )
        return self._llm_client

    def _get_pipeline(self):
        if self._pipeline is None:
            from geo_audit.modules.schema_audit import AnalysisRequestBuilder, AuditPipeline
            llm_cfg = self.config.get("llm", {})
            builder = AnalysisRequestBuilder(
                model=llm_cfg.get("model", "gpt-4"),
                max_tokens=llm_cfg.get("max_tokens", 2000),
                temperature=llm_cfg.get("temperature", 0.3),
                language=self.language,
            )
            self._pipeline = AuditPipeline(
                self._get_llm_client(),
                builder=builder,
                event_sink=self._events,
                timeout=llm_cfg.get("timeout", 30),
                language=self.language,
            )
        return self._pipeline

    def _get_store(self):
        if self._store is None:
            from geo_audit.modules.schema_audit.store import AuditStore
            self._store = AuditStore(user_id=self._user_id)
        return self._store

    def _get_schema_generator(self):
        if self._generator is None:
            from geo_audit.modules.schema_audit.schema_generator import SchemaGenerator
            self._generator = SchemaGenerator()
        return self._generator

    def _wordpress_client(self, integration: dict[str, Any]):
        from geo_audit.integrations.wordpress_client import DEFAULT_SCHEMA_ROUTE, WordPressClient
        wp_cfg = self.config.get("wordpress", {})
        return WordPressClient(
            integration["domain"],
            integration["username"],
            integration["application_password"],
            schema_route=wp_cfg.get("schema_route", DEFAULT_SCHEMA_ROUTE),
            timeout=wp_cfg.get("timeout", 30),
            transport=self._wp_transport,
        )

    def _require_integration(self, integration_id: int) -> dict[str, Any]:
        integration = self._get_store().get_integration(integration_id)
        if integration is None:
            raise ValueError(f"WordPress integration {integration_id} not found")
        return integration

    # ------------------------------------------------------------------
    # Workflows
    # ------------------------------------------------------------------

    async def audit_website(
        self, url: str, save: bool = True
    ) -> tuple[AuditAnalysis, Optional[dict[str, Any]]]:
        """Audit a whole site; returns the analysis and the stored record."""
        self._ensure_initialized()
        from geo_audit.utils.helpers import normalise_audit_url

        url = normalise_audit_url(url)
        emit(self._events, events.SCHEMA_AUDIT_CLICKED, action="audit_website", url=url)
        analysis = await self._get_pipeline().analyze(WebsiteTarget(url=url))
        record = self._get_store().record_site_audit(url, analysis) if save else None
        return analysis, record

    async def connect_wordpress(
        self, domain: str, username: str, application_password: str
    ) -> dict[str, Any]:
        """Verify credentials and store the integration.

        Raises ``ValueError`` for an unusable site address and
        ``WordPressError`` when the site rejects the credentials.
        """
        self._ensure_initialized()
        from geo_audit.utils.helpers import normalise_site_domain

        emit(self._events, events.CONNECT_WORDPRESS_CLICKED, action="connect_wordpress", domain=domain)
        full_domain = normalise_site_domain(domain)
        client = self._wordpress_client({
            "domain": full_domain,
            "username": username,
            "application_password": application_password,
        })
        user_info = await client.verify_credentials()
        return self._get_store().save_integration(
            domain=full_domain,
            username=username,
            application_password=application_password,
            user_info=user_info,
            connection_status="connected",
            site_name=user_info.get("name") or "WordPress Site",
        )

    def disconnect_wordpress(self, integration_id: int) -> dict[str, Any]:
        """Soft-delete a stored integration; returns the removed record."""
        self._ensure_initialized()
        integration = self._require_integration(integration_id)
        self._get_store().delete_integration(integration_id)
        logger.info("Disconnected WordPress site %s", integration["domain"])
        return integration

    async def list_posts(self, integration_id: int, per_page: int = 10) -> list[dict[str, Any]]:
        self._ensure_initialized()
        integration = self._require_integration(integration_id)
        return await self._wordpress_client(integration).list_posts(per_page=per_page)

    async def audit_post(
        self, integration_id: int, post_id: int, save: bool = True
    ) -> PostAuditResult:
        """Audit one post and generate its Article schema."""
        self._ensure_initialized()
        from geo_audit.integrations.wordpress_client import post_to_metadata, post_to_target

        integration = self._require_integration(integration_id)
        post = await self._wordpress_client(integration).get_post(post_id)
        target = post_to_target(post)
        emit(
            self._events, events.POST_AUDIT_CLICKED, action="audit_post",
            postId=str(post_id), postTitle=target.title,
        )

        analysis = await self._get_pipeline().analyze(target)
        schema = self._get_schema_generator().generate(
            analysis, post_to_metadata(post, integration["domain"])
        )

        audit_id = None
        if save:
            record = self._get_store().record_post_audit(
                integration_id, post_id, target.title, target.url, analysis, schema
            )
            audit_id = record["id"]
        return PostAuditResult(
            integration_id=integration_id,
            post_id=post_id,
            post_title=target.title,
            post_url=target.url,
            analysis=analysis,
            generated_schema=schema,
            audit_id=audit_id,
        )

    async def publish_post_schema(
        self,
        integration_id: int,
        post_id: int,
        schema: dict,
        audit_id: Optional[int] = None,
    ) -> dict[str, Any]:
        """Push *schema* to the site and record the publication outcome.

        Failures are recorded with status ``failed`` and re-raised.
        """
        self._ensure_initialized()
        from geo_audit.integrations.wordpress_client import WordPressError

        integration = self._require_integration(integration_id)
        emit(
            self._events, events.PUBLISH_SCHEMA_CLICKED, action="publish_schema",
            domain=integration["domain"], postId=str(post_id),
        )

        validation = self._get_schema_generator().validate_schema(schema)
        for warning in validation["warnings"]:
            logger.warning("Schema for post %s: %s", post_id, warning)
        if not validation["is_valid"]:
            raise ValueError("Refusing to publish invalid schema: " + "; ".join(validation["errors"]))

        store = self._get_store()
        publication = store.record_publication(
            integration_id, schema, post_id=post_id, audit_id=audit_id
        )
        try:
            await self._wordpress_client(integration).publish_schema(post_id, schema)
        except WordPressError as exc:
            store.mark_publication(publication["id"], "failed", error=str(exc))
            raise
        return store.mark_publication(publication["id"], "published")

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_status(self) -> dict[str, dict[str, Any]]:
        """Return health status of the major components."""
        self._ensure_initialized()
        status: dict[str, dict[str, Any]] = {}

        try:
            stats = self._get_store().get_stats()
            status["database"] = {
                "status": "ok",
                "details": f"{stats['total_audits']} audits, {stats['connected_integrations']} integrations",
            }
        except Exception as exc:
            status["database"] = {"status": "error", "details": str(exc)}

        openai_configured = bool(os.getenv("OPENAI_API_KEY"))
        status["llm"] = {
            "status": "ok" if openai_configured else "warning",
            "details": "OpenAI configured" if openai_configured else "no key; placeholder results only",
        }

        publish_key = bool(os.getenv("WP_SCHEMA_API_KEY"))
        status["publishing"] = {
            "status": "ok" if publish_key else "warning",
            "details": "API key set" if publish_key else "WP_SCHEMA_API_KEY not set",
        }

        status["config"] = {
            "status": "ok" if self.config else "warning",
            "details": f"{len(self.config)} sections loaded" if self.config else "no config",
        }
        return status
