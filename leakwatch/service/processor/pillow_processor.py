import io
from pathlib import Path
from typing import Callable, Dict, List, Optional

from PIL import Image, ImageEnhance, ImageFilter, ImageOps

from leakwatch.config.pipeline_step import PipelineStep
from leakwatch.service.processor.processor import ImageProcessor
from leakwatch.util.log_config import setup_logger

logger = setup_logger(__name__)

_ENHANCERS = {
    "brightness": ImageEnhance.Brightness,
    "contrast": ImageEnhance.Contrast,
    "color": ImageEnhance.Color,
    "sharpness": ImageEnhance.Sharpness,
}

_FILTERS = {
    "blur": lambda args: ImageFilter.BLUR,
    "contour": lambda args: ImageFilter.CONTOUR,
    "detail": lambda args: ImageFilter.DETAIL,
    "edge_enhance": lambda args: ImageFilter.EDGE_ENHANCE,
    "emboss": lambda args: ImageFilter.EMBOSS,
    "sharpen": lambda args: ImageFilter.SHARPEN,
    "smooth": lambda args: ImageFilter.SMOOTH,
    "gaussian_blur": lambda args: ImageFilter.GaussianBlur(radius=args.get("radius", 2)),
    "box_blur": lambda args: ImageFilter.BoxBlur(radius=args.get("radius", 2)),
    "unsharp_mask": lambda args: ImageFilter.UnsharpMask(
        radius=args.get("radius", 2), percent=args.get("percent", 150), threshold=args.get("threshold", 3)
    ),
    "median": lambda args: ImageFilter.MedianFilter(size=args.get("size", 3)),
}


def _enhance(op: str) -> Callable[[Image.Image, Dict], Image.Image]:
    enhancer = _ENHANCERS[op]
    return lambda img, args: enhancer(img).enhance(float(args.get("factor", 1.0)))


def _filter(img: Image.Image, args: Dict) -> Image.Image:
    name = args.get("name", "blur")
    if name not in _FILTERS:
        raise ValueError(f"Unknown filter '{name}'. Known filters: {sorted(_FILTERS)}")
    return img.filter(_FILTERS[name](args))


def _resize(img: Image.Image, args: Dict) -> Image.Image:
    return img.resize((int(args["width"]), int(args["height"])))


def _rotate(img: Image.Image, args: Dict) -> Image.Image:
    return img.rotate(float(args.get("angle", 90)), expand=bool(args.get("expand", True)))


def _greyscale(img: Image.Image, args: Dict) -> Image.Image:
    return ImageOps.grayscale(img)


def _invert(img: Image.Image, args: Dict) -> Image.Image:
    return ImageOps.invert(img.convert("RGB"))


OPERATIONS: Dict[str, Callable[[Image.Image, Dict], Image.Image]] = {
    **{op: _enhance(op) for op in _ENHANCERS},
    "filter": _filter,
    "resize": _resize,
    "rotate": _rotate,
    "greyscale": _greyscale,
    "invert": _invert,
}


class PillowProcessor(ImageProcessor):
    """
    Run a Pillow pipeline on the input file.

    Each call opens the image, applies the configured steps and renders the
    result, either into an in-memory buffer or to output_path. The blocking
    Pillow work runs in a worker thread so the event loop stays responsive.
    """

    name = "pillow"

    def __init__(self, pipeline: Optional[List[PipelineStep]] = None, output_path: Optional[Path] = None, image_format: str = "JPEG"):
        super().__init__()
        self.pipeline = list(pipeline or [])
        self.output_path = output_path
        self.image_format = image_format
        self.last_output_size = 0
        for step in self.pipeline:
            if step.op not in OPERATIONS:
                raise ValueError(f"Unknown pipeline operation '{step.op}'. Known operations: {sorted(OPERATIONS)}")
        logger.debug(f"Pillow pipeline: {[step.op for step in self.pipeline] or '(render only)'}")

    async def _process(self, path: Path) -> None:
        self.last_output_size = await self._offload(self._render, path)

    def _render(self, path: Path) -> int:
        with Image.open(path) as src:
            img = src.copy()
        for step in self.pipeline:
            img = OPERATIONS[step.op](img, step.args)

        if self.image_format.upper() == "JPEG" and img.mode not in ("RGB", "L"):
            img = img.convert("RGB")

        if self.output_path is not None:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            img.save(self.output_path, format=self.image_format)
            return self.output_path.stat().st_size

        buffer = io.BytesIO()
        img.save(buffer, format=self.image_format)
        return buffer.tell()
