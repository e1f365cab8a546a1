"""Text generation clients used for AI recipe generation."""

import json
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from cooksmart_utils.ai.config import DEFAULT_AI_CONFIG, AIServiceConfig
from cooksmart_utils.errors import NetworkError

logger = logging.getLogger(__name__)


class RecipeModel(ABC):
    """A text model that answers a prompt with a completion."""

    @abstractmethod
    def complete(self, prompt: str) -> str:
        """Return the raw completion text for ``prompt``.

        Raises:
            NetworkError: If the model cannot be reached.
        """


class BedrockRecipeModel(RecipeModel):
    """Recipe generation through AWS Bedrock ``invoke_model``.

    Request and response bodies differ by model family. Claude 3 (messages
    API), Amazon Nova, Amazon Titan and legacy Claude text completions are
    supported.

    Args:
        config: Model id, region and sampling settings.
        client: Pre-built ``bedrock-runtime`` client. One is created on first
            use when omitted.
    """

    def __init__(self, config: AIServiceConfig = DEFAULT_AI_CONFIG, client: Any = None):
        self.config = config
        self._client = client
        self._client_lock = threading.Lock()

    @property
    def model_id(self) -> str:
        return self.config.model_id

    @property
    def client(self) -> Any:
        with self._client_lock:
            if self._client is None:
                self._client = boto3.client("bedrock-runtime", region_name=self.config.region)
            return self._client

    def build_body(self, prompt: str) -> Dict[str, Any]:
        """Request body for the configured model family."""
        model_id = self.model_id
        if "anthropic.claude-3" in model_id:
            return {
                "anthropic_version": "bedrock-2023-05-31",
                "max_tokens": self.config.max_tokens,
                "temperature": self.config.temperature,
                "messages": [{"role": "user", "content": [{"type": "text", "text": prompt}]}],
            }
        if "amazon.nova" in model_id:
            return {
                "messages": [{"role": "user", "content": [{"text": prompt}]}],
                "inferenceConfig": {
                    "max_new_tokens": self.config.max_tokens,
                    "temperature": self.config.temperature,
                },
            }
        if "amazon.titan" in model_id:
            return {
                "inputText": prompt,
                "textGenerationConfig": {
                    "maxTokenCount": self.config.max_tokens,
                    "temperature": self.config.temperature,
                },
            }
        # Legacy Claude
        return {
            "prompt": f"\n\nHuman:{prompt}\n\nAssistant:",
            "max_tokens_to_sample": self.config.max_tokens,
            "temperature": self.config.temperature,
            "top_p": 0.9,
        }

    def extract_completion(self, response_body: Dict[str, Any]) -> str:
        """Pull the completion text out of a decoded response body."""
        model_id = self.model_id
        if "anthropic.claude-3" in model_id:
            content = response_body.get("content") or [{}]
            return content[0].get("text", "")
        if "amazon.nova" in model_id:
            content = response_body.get("output", {}).get("message", {}).get("content") or [{}]
            return content[0].get("text", "")
        if "amazon.titan" in model_id:
            results = response_body.get("results") or [{}]
            return results[0].get("outputText", "")
        return response_body.get("completion", "")

    def complete(self, prompt: str) -> str:
        try:
            response = self.client.invoke_model(
                body=json.dumps(self.build_body(prompt)),
                modelId=self.model_id,
                accept="application/json",
                contentType="application/json",
            )
            response_body = json.loads(response.get("body").read())
        except (BotoCoreError, ClientError) as e:
            raise NetworkError(f"Bedrock call to {self.model_id} failed: {e}", source="bedrock") from e
        except ValueError as e:
            raise NetworkError(f"Bedrock returned invalid JSON: {e}", source="bedrock") from e

        completion = self.extract_completion(response_body)
        logger.debug(f"Bedrock completion: {len(completion)} chars from {self.model_id}")
        return completion or ""
