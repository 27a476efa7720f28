"""Replicate image generation client.

Wraps Replicate's HTTP prediction API with ``httpx``.  Predictions are created
with the ``Prefer: wait`` header so the response carries the output directly;
the composed prompt is sent verbatim.

Models
------
Each supported model takes a slightly different input payload.
:func:`build_model_input` produces the payload for a model alias:

==============  =========================================================
Alias           Input
==============  =========================================================
SEEDREAM_4      aspect_ratio, enhance_prompt, max_images, image_input
FLUX_*          aspect_ratio, num_outputs, image, prompt_strength
                (+ guidance_scale, num_inference_steps for PRO and DEV)
SDXL            width, height, num_outputs, guidance_scale,
                num_inference_steps, image, prompt_strength
==============  =========================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from instadream.core.config import InstadreamConfig

logger = logging.getLogger(__name__)

MODELS: dict[str, str] = {
    "SEEDREAM_4": "bytedance/seedream-4",
    "FLUX_PRO": "black-forest-labs/flux-pro",
    "FLUX_DEV": "black-forest-labs/flux-dev",
    "FLUX_SCHNELL": "black-forest-labs/flux-schnell",
    "SDXL": "stability-ai/sdxl:39ed52f2a78e934b3ba6e2a89f5b1c712de7dfea535525255b1aa35c5565e08b",
}


class ImageGenerationError(Exception):
    """Raised when Replicate rejects a request or returns no usable image."""


@dataclass(frozen=True)
class GenerateImageOptions:
    """Parameters for one image generation call."""

    prompt: str
    model: str = "SEEDREAM_4"
    aspect_ratio: str = "1:1"
    width: int | None = None
    height: int | None = None
    num_outputs: int = 1
    guidance_scale: float = 7.5
    num_inference_steps: int = 50
    reference_image: str | None = None
    image_prompt_strength: float = 0.5


@dataclass(frozen=True)
class GeneratedImage:
    """URL of the first output image and the model path that produced it."""

    url: str
    model_used: str


def build_model_input(options: GenerateImageOptions) -> dict:
    """Map generation options onto the input payload of ``options.model``.

    Raises:
        ImageGenerationError: If the model alias is unknown.
    """
    if options.model not in MODELS:
        raise ImageGenerationError(f"Unknown image model: {options.model}")

    model_input: dict = {"prompt": options.prompt}

    if options.model == "SEEDREAM_4":
        model_input["aspect_ratio"] = options.aspect_ratio
        model_input["enhance_prompt"] = True
        model_input["max_images"] = options.num_outputs
        if options.reference_image:
            model_input["image_input"] = [options.reference_image]
    elif options.model.startswith("FLUX"):
        model_input["aspect_ratio"] = options.aspect_ratio
        model_input["num_outputs"] = options.num_outputs
        if options.reference_image:
            model_input["image"] = options.reference_image
            model_input["prompt_strength"] = options.image_prompt_strength
        if options.model in ("FLUX_PRO", "FLUX_DEV"):
            model_input["guidance_scale"] = options.guidance_scale
            model_input["num_inference_steps"] = options.num_inference_steps
    elif options.model == "SDXL":
        model_input["width"] = options.width or 1024
        model_input["height"] = options.height or 1024
        model_input["num_outputs"] = options.num_outputs
        model_input["guidance_scale"] = options.guidance_scale
        model_input["num_inference_steps"] = options.num_inference_steps
        if options.reference_image:
            model_input["image"] = options.reference_image
            model_input["prompt_strength"] = options.image_prompt_strength

    return model_input


def extract_image_url(output) -> str:
    """Return the first image URL from a prediction output.

    Raises:
        ImageGenerationError: If the output is neither a URL nor a list of URLs.
    """
    if isinstance(output, list) and output and isinstance(output[0], str):
        return output[0]
    if isinstance(output, str):
        return output
    raise ImageGenerationError("Unexpected output format from Replicate")


def _prediction_body(response: httpx.Response) -> dict:
    """Decode a prediction response, which must be a JSON object."""
    try:
        prediction = response.json()
    except ValueError as exc:
        raise ImageGenerationError(
            f"Replicate returned a non-JSON response: {response.text[:200]}"
        ) from exc
    if not isinstance(prediction, dict):
        raise ImageGenerationError("Replicate returned an unexpected prediction payload")
    return prediction


class ReplicateClient:
    """Minimal synchronous Replicate client.

    Args:
        api_token: Replicate API token.
        base_url: API root, e.g. ``https://api.replicate.com/v1``.
        timeout: Seconds to wait for a prediction.
        default_model: Alias used by :meth:`generate_instagram_post`.
        default_aspect_ratio: Aspect ratio used by :meth:`generate_instagram_post`.
        http_client: Pre-built ``httpx.Client`` (tests pass one backed by
            ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_token: str,
        *,
        base_url: str = "https://api.replicate.com/v1",
        timeout: float = 120.0,
        default_model: str = "SEEDREAM_4",
        default_aspect_ratio: str = "1:1",
        http_client: httpx.Client | None = None,
    ):
        self.default_model = default_model
        self.default_aspect_ratio = default_aspect_ratio
        self._http = http_client or httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {api_token}",
                "Content-Type": "application/json",
            },
        )

    @classmethod
    def from_config(cls, config: InstadreamConfig) -> ReplicateClient:
        return cls(
            config.replicate_api_token,
            base_url=config.replicate_base_url,
            timeout=config.image_timeout,
            default_model=config.image_model,
            default_aspect_ratio=config.image_aspect_ratio,
        )

    @property
    def model_path(self) -> str:
        """Replicate path of the default model."""
        return MODELS[self.default_model]

    def _create_prediction(self, model_path: str, model_input: dict) -> dict:
        # Versioned models ("owner/name:version") use the generic endpoint.
        name, _, version = model_path.partition(":")
        if version:
            url = "/predictions"
            body = {"version": version, "input": model_input}
        else:
            url = f"/models/{name}/predictions"
            body = {"input": model_input}

        try:
            response = self._http.post(url, json=body, headers={"Prefer": "wait"})
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ImageGenerationError(
                f"Replicate returned {exc.response.status_code}: {exc.response.text}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ImageGenerationError(f"Replicate request failed: {exc}") from exc

        return _prediction_body(response)

    def generate_image(self, options: GenerateImageOptions) -> GeneratedImage:
        """Run a prediction and return the first output image.

        Raises:
            ImageGenerationError: If the request fails, the prediction fails,
                or the output is unusable.
        """
        model_input = build_model_input(options)
        model_path = MODELS[options.model]
        logger.info(f"Generating image with {model_path}")

        try:
            prediction = self._create_prediction(model_path, model_input)

            status = prediction.get("status")
            if status in ("failed", "canceled"):
                raise ImageGenerationError(
                    f"Prediction {status}: {prediction.get('error') or 'unknown error'}"
                )
            if prediction.get("output") is None:
                raise ImageGenerationError(
                    f"Prediction {prediction.get('id')} did not finish (status: {status})"
                )
            url = extract_image_url(prediction["output"])
        except ImageGenerationError as exc:
            logger.error(f"Error generating image with Replicate: {exc}")
            raise

        return GeneratedImage(url=url, model_used=model_path)

    def generate_instagram_post(
        self,
        prompt: str,
        reference_image: str | None = None,
        image_prompt_strength: float | None = None,
    ) -> GeneratedImage:
        """Generate a feed image from an already composed prompt."""
        return self.generate_image(
            GenerateImageOptions(
                prompt=prompt,
                model=self.default_model,
                aspect_ratio=self.default_aspect_ratio,
                reference_image=reference_image,
                image_prompt_strength=(
                    image_prompt_strength if image_prompt_strength is not None else 0.5
                ),
            )
        )

    def get_prediction(self, prediction_id: str) -> dict:
        """Return the current state of a prediction."""
        try:
            response = self._http.get(f"/predictions/{prediction_id}")
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error(f"Error getting prediction status: {exc}")
            raise ImageGenerationError(f"Failed to fetch prediction {prediction_id}") from exc
        return _prediction_body(response)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._http.close()
