"""
Knowledge-graph memory: publish generated posts to the OriginTrail DKG.
"""
import asyncio
import json
import logging
import re
from dataclasses import dataclass, fields
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from core.ai import AIService
from core.context import TemplateRegistry, compose_context

logger = logging.getLogger(__name__)

DKG_EXPLORER_LINKS = {
    "development": "http://localhost:8080/explore?ual=",
    "devnet": "https://dkg-devnet.origintrail.io/explore?ual=",
    "testnet": "https://dkg-testnet.origintrail.io/explore?ual=",
    "mainnet": "https://dkg.origintrail.io/explore?ual=",
}

AGENT_ACTOR = "ChatDKG"
ASSET_EPOCHS = 12
JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")
TIMEOUT_MESSAGE = (
    "❌ DKG persistence timed out. The node may still publish the memory; "
    "check the explorer before retrying."
)

Reply = Callable[[str], Awaitable[Any]]


@dataclass
class DKGSettings:
    environment: Optional[str] = None
    hostname: Optional[str] = None
    port: Optional[str] = None
    blockchain_name: Optional[str] = None
    public_key: Optional[str] = None
    private_key: Optional[str] = None

    ENV_NAMES = {
        "environment": "DKG_ENVIRONMENT",
        "hostname": "DKG_HOSTNAME",
        "port": "DKG_PORT",
        "blockchain_name": "DKG_BLOCKCHAIN_NAME",
        "public_key": "DKG_PUBLIC_KEY",
        "private_key": "DKG_PRIVATE_KEY",
    }

    @classmethod
    def from_config(cls, config) -> "DKGSettings":
        return cls(**{name: getattr(config, env) for name, env in cls.ENV_NAMES.items()})

    def missing(self) -> List[str]:
        return [self.ENV_NAMES[f.name] for f in fields(self) if not getattr(self, f.name)]


def build_dkg_client(settings: DKGSettings):
    """Create a DKG SDK client from settings. Requires the ``dkg`` extra."""
    from dkg import DKG
    from dkg.providers import BlockchainProvider, NodeHTTPProvider

    node_provider = NodeHTTPProvider(
        endpoint_uri=f"{settings.hostname}:{settings.port}",
        api_version="v1",
    )
    blockchain_provider = BlockchainProvider(
        settings.environment,
        settings.blockchain_name,
        private_key=settings.private_key,
    )
    return DKG(
        node_provider,
        blockchain_provider,
        config={"max_number_of_retries": 300, "frequency": 2},
    )


def extract_actor(actors: Optional[str]) -> Optional[str]:
    """Return the first listed actor that is not the agent itself."""
    if not actors:
        return None
    lines = [line for line in actors.split("\n") if line.strip()]
    for actor in lines[1:]:
        if actor.strip() != AGENT_ACTOR:
            return actor
    return None


def parse_knowledge_graph(text: str) -> Optional[Dict[str, Any]]:
    match = JSON_OBJECT_PATTERN.search(text)
    if not match:
        logger.error("No valid JSON-LD object found in the response.")
        return None
    try:
        graph = json.loads(match.group(0).strip())
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse JSON-LD: {e}")
        return None
    if not isinstance(graph, dict):
        logger.error(f"JSON-LD is not an object: {type(graph).__name__}")
        return None
    logger.info(f"Parsed memory knowledge graph:\n{json.dumps(graph, indent=2)}")
    return graph


class DKGMemoryService:
    """Turns a generated post into a knowledge asset and reports the result."""

    def __init__(
        self,
        settings: DKGSettings,
        ai_service: AIService,
        registry: TemplateRegistry,
        client_factory: Callable[[DKGSettings], Any] = build_dkg_client,
        publish_timeout: float = 600,
        template: str = "dkg_memory",
    ):
        self.settings = settings
        self.ai = ai_service
        self.registry = registry
        self.client_factory = client_factory
        self.publish_timeout = publish_timeout
        self.template = template

    def validate(self) -> bool:
        missing = self.settings.missing()
        if missing:
            logger.error(f"Missing required environment variables: {', '.join(missing)}")
            return False
        return True

    def explorer_link(self, ual: str) -> str:
        return f"{DKG_EXPLORER_LINKS.get(self.settings.environment or '', '')}{ual}"

    async def safe_reply(self, reply: Reply, text: str) -> None:
        """Send a status message; send failures are logged and dropped."""
        try:
            await reply(text)
        except Exception as e:
            logger.error(f"Failed to send DKG status message: {e}")

    async def insert_memory(self, state: Mapping[str, Any], reply: Reply) -> bool:
        """
        Publish ``state["currentPost"]`` as a knowledge asset.

        Returns True when the asset was created. Failures are logged and sent
        to the user through ``reply``; they are never raised.
        """
        if not self.validate():
            return False

        logger.info(f"currentPost: {state.get('currentPost')}")
        telegram_user = extract_actor(state.get("actors"))

        try:
            context = compose_context(state, self.template, self.registry)
            graph_text = await self.ai.generate_text(context)
        except Exception as e:
            logger.error(f"Error generating knowledge graph: {e}")
            await self.safe_reply(reply, f"❌ DKG persistence failed: {e}")
            return False

        graph = parse_knowledge_graph(graph_text)
        if graph is None:
            await self.safe_reply(reply, "❌ DKG persistence failed: could not parse knowledge graph")
            return False

        try:
            logger.info("Publishing message to DKG")
            client = self.client_factory(self.settings)
            result = await asyncio.wait_for(
                asyncio.to_thread(
                    client.asset.create,
                    {"public": graph},
                    epochs_number=ASSET_EPOCHS,
                ),
                timeout=self.publish_timeout,
            )
            ual = result["UAL"]
        except asyncio.TimeoutError:
            # the worker thread cannot be cancelled, so the SDK call may still finish
            logger.warning(
                f"Publishing to DKG timed out after {self.publish_timeout}s; "
                "the asset may still be created by the running SDK call"
            )
            await self.safe_reply(reply, TIMEOUT_MESSAGE)
            return False
        except Exception as e:
            logger.error(f"Error occurred while publishing message to DKG: {e}", exc_info=True)
            await self.safe_reply(reply, f"❌ DKG persistence failed: {e}")
            return False

        logger.info(f"======================== ASSET CREATED {ual}")
        suffix = f" @{telegram_user.lstrip('@')}" if telegram_user else ""
        await self.safe_reply(
            reply,
            "Created a new memory!\n\n"
            "Read my mind on @origin_trail Decentralized Knowledge Graph "
            f"{self.explorer_link(ual)}{suffix}"
        )
        return True
