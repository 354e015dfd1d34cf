import argparse
import sys

from detkit import DetectError, DetectPostConfig, load_pipeline, read_image, write_image


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Detect objects in one image and save it with boxes drawn.")
    parser.add_argument("image", help="Path to an input image.")
    parser.add_argument("--config", default="data/config.json", help="Model config JSON (model_path, class_names, input_size).")
    parser.add_argument("--out", default="boxes.jpg", help="Output path for the annotated image.")
    parser.add_argument("--conf", type=float, default=0.5, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=0.5, help="IoU threshold for NMS.")
    parser.add_argument("--max-det", type=int, default=300, help="Keep at most N detections.")
    parser.add_argument("--per-class-nms", action="store_true", help="Run NMS separately for each class.")
    parser.add_argument(
        "--coords",
        choices=("padded", "original"),
        default="padded",
        help="padded: draw on the letterboxed canvas; original: map boxes back and draw on the input image.",
    )
    parser.add_argument("--no-upscale", action="store_true", help="Never enlarge images smaller than the input size.")
    parser.add_argument("--backend", default=None, help="Force backend: opencv / onnxruntime.")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--labels", action="store_true", help="Draw class name + score next to each box.")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    onnx_providers = None
    if args.onnx_providers:
        onnx_providers = [p.strip() for p in str(args.onnx_providers).split(",") if p.strip()]

    try:
        post_cfg = DetectPostConfig(
            conf_threshold=args.conf,
            iou_threshold=args.iou,
            max_detections=args.max_det,
            class_agnostic_nms=not args.per_class_nms,
            coordinate_space=args.coords,
        )
        pipeline = load_pipeline(
            args.config,
            backend=args.backend,
            allow_upscale=not args.no_upscale,
            post_cfg=post_cfg,
            onnx_providers=onnx_providers,
        )
        image = read_image(args.image)
        result = pipeline(image)
        vis = pipeline.render(result, image, show_labels=args.labels)
        out_path = write_image(args.out, vis)
    except (DetectError, FileNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(f"Num detections: {len(result)}")
    for det in result.detections:
        name = det.class_name if det.class_name is not None else str(det.class_index)
        print(name, f"{det.score:.3f}", det.box.as_xywh())
    print(f"wrote {out_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
