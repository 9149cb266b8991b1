"""
Service initialization and dependency injection for Chatbot Copilot API.

Creates and manages all service instances used by the API.
"""

import logging
from typing import Optional

from chat.business_hours import BusinessHours
from chat.processor import MessageProcessor
from config.settings import get_settings, Settings
from llm.conversation_store import InMemoryConversationStore
from llm.customer_store import InMemoryCustomerStore
from llm.key_rotator import ProviderKeyRotator
from llm.providers.openai_provider import OpenAIProvider
from llm.response_generator import ResponseGenerator
from llm.retry import RetryExecutor
from llm.vision import ImageAnalyzer
from retrieval.context_retriever import ContextRetriever
from retrieval.embedder import EmbeddingService
from retrieval.pinecone_client import PineconeClient, PineconeConfig
from triage.escalation import EscalationEvaluator
from triage.intent_classifier import IntentClassifier

logger = logging.getLogger(__name__)


class Services:
    """Container for all application services."""

    def __init__(self):
        self.settings: Optional[Settings] = None
        self.key_rotator: Optional[ProviderKeyRotator] = None
        self.retry_executor: Optional[RetryExecutor] = None
        self.provider: Optional[OpenAIProvider] = None
        self.embedding_service: Optional[EmbeddingService] = None
        self.pinecone_client: Optional[PineconeClient] = None
        self.context_retriever: Optional[ContextRetriever] = None
        self.intent_classifier: Optional[IntentClassifier] = None
        self.response_generator: Optional[ResponseGenerator] = None
        self.escalation_evaluator: Optional[EscalationEvaluator] = None
        self.image_analyzer: Optional[ImageAnalyzer] = None
        self.business_hours: Optional[BusinessHours] = None
        self.processor: Optional[MessageProcessor] = None
        self._initialized = False

    def initialize(self, settings: Optional[Settings] = None):
        """Initialize all services."""
        if self._initialized:
            return

        self.settings = settings or get_settings()
        self.business_hours = BusinessHours(
            start=self.settings.business_hours_start,
            end=self.settings.business_hours_end,
            timezone=self.settings.timezone,
        )
        logger.info(f"Initializing services with model: {self.settings.openai_llm_model}")

        try:
            self._init_provider()
            self._init_embedding()
            self._init_pinecone()
            self._init_processor()
            self._initialized = True
            logger.info("All services initialized successfully")
        except Exception as e:
            logger.error(f"Service initialization failed: {e}")
            # Allow API to start even if some services fail
            self._initialized = True
            logger.warning("API starting in degraded mode")

    def _init_provider(self):
        """Initialize key pool, retry policy and generation provider."""
        s = self.settings

        self.key_rotator = ProviderKeyRotator(s.openai_api_keys_list)
        self.retry_executor = RetryExecutor(
            self.key_rotator,
            max_attempts=s.retry_max_attempts,
            base_delay=s.retry_base_delay_seconds,
            timeout=s.provider_timeout_seconds,
        )
        self.provider = OpenAIProvider(
            key_rotator=self.key_rotator,
            model_id=s.openai_llm_model,
            embed_model_id=s.openai_embed_model,
            vision_model_id=s.openai_vision_model,
            embedding_dimension=s.embedding_dimension,
            max_tokens=s.max_tokens,
            temperature=s.temperature,
            timeout=s.provider_timeout_seconds,
            base_url=s.openai_base_url,
        )
        logger.info(f"Provider ready with {self.key_rotator.size} key(s)")

    def _init_embedding(self):
        """Initialize embedding service."""
        s = self.settings
        self.embedding_service = EmbeddingService(
            self.provider,
            dimension=s.embedding_dimension,
            timeout=s.provider_timeout_seconds,
        )
        logger.info(f"Embedding service ready: {s.openai_embed_model}")

    def _init_pinecone(self):
        """Initialize Pinecone client."""
        s = self.settings

        if not s.pinecone_api_key:
            logger.warning("PINECONE_API_KEY not set, context retrieval disabled")
            return

        config = PineconeConfig(
            api_key=s.pinecone_api_key,
            index_name=s.pinecone_index_name,
            cloud=s.pinecone_cloud,
            region=s.pinecone_region,
            dimension=s.embedding_dimension,
        )
        try:
            self.pinecone_client = PineconeClient(config)
            logger.info("Pinecone client ready")
        except Exception as e:
            logger.warning(f"Pinecone unavailable, context retrieval disabled: {e}")

    def _init_processor(self):
        """Initialize triage components and the message processor."""
        s = self.settings

        self.context_retriever = ContextRetriever(
            self.embedding_service,
            self.pinecone_client,
            namespace=s.pinecone_namespace,
            default_top_k=s.top_k,
            timeout=s.provider_timeout_seconds,
        )
        self.intent_classifier = IntentClassifier(self.provider, self.retry_executor)
        self.response_generator = ResponseGenerator(
            self.provider,
            self.retry_executor,
            business_hours=self.business_hours.label,
        )
        self.escalation_evaluator = EscalationEvaluator(confidence_threshold=s.confidence_threshold)
        self.image_analyzer = ImageAnalyzer(self.provider, self.retry_executor, self.context_retriever)

        self.processor = MessageProcessor(
            intent_classifier=self.intent_classifier,
            context_retriever=self.context_retriever,
            response_generator=self.response_generator,
            escalation_evaluator=self.escalation_evaluator,
            customer_store=InMemoryCustomerStore(),
            conversation_store=InMemoryConversationStore(),
            top_k=s.top_k,
            index_staff_replies=s.index_staff_replies,
        )
        logger.info("Message processor ready")

    @property
    def is_ready(self) -> bool:
        return self._initialized and self.processor is not None

    def health(self) -> dict:
        """Return health status of all services."""
        return {
            "initialized": self._initialized,
            "provider": self.provider is not None,
            "provider_keys": self.key_rotator.size if self.key_rotator else 0,
            "embedding": self.embedding_service is not None,
            "pinecone": self.pinecone_client is not None,
            "processor": self.processor is not None,
            "image_analyzer": self.image_analyzer is not None,
        }

    def reset(self):
        """Drop all service instances (used by tests)."""
        self.__init__()


# Singleton
_services = Services()


def get_services() -> Services:
    """Get the global services instance."""
    return _services


def initialize_services():
    """Initialize all services (called at startup)."""
    _services.initialize()
