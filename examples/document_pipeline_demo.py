#!/usr/bin/env python3
"""
Document intelligence pipeline demonstration script.

Shows engine availability, Arabic text enhancement, document classification
and quality assessment. Pass image paths to run the full pipeline on real
scans; without them only the text stages run, on built-in sample text.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from docintel import (
    AllEnginesFailedError,
    ArabicTextEnhancer,
    DocumentClassifier,
    DocumentIntelligencePipeline,
    OCROptions,
    QualityAssessor,
    configure_logging,
    get_settings,
)
from docintel.models import BatchDocument

SAMPLE_TEXT = (
    "عقد عمل\n"
    "المادة ١ يلتزم الموظف بأداء مهام الوظيفة في مكه\n"
    "المادة ٢ يستحق الموظف راتب شهري قدره ٥٠٠٠ ريال\n"
    "المادة ٣ يجوز إنهاء العقد بإشعار مدته شهر"
)


def demo_engine_status(pipeline: DocumentIntelligencePipeline):
    """Show which OCR engines are configured."""
    print("🔍 OCR Engine Status")
    print("=" * 50)
    for engine, available in pipeline.ocr_processor.get_engine_status().items():
        print(f"{'✅' if available else '❌'} {engine}")


async def demo_text_enhancement(enhancer: ArabicTextEnhancer):
    print("\n✨ Arabic Text Enhancement")
    print("-" * 35)

    result = await enhancer.enhance_text(SAMPLE_TEXT)
    print(f"Corrections: {result.metadata.correction_count}, confidence {result.metadata.confidence_score:.2f}")
    for correction in result.corrections[:5]:
        print(f"   • {correction.type.value}: '{correction.original}' → '{correction.corrected}' at {correction.position}")
    print(f"Direction segments: {len(result.rtl_segments)}")


async def demo_classification(classifier: DocumentClassifier):
    print("\n🗂️  Document Classification")
    print("-" * 35)

    result = await classifier.classify_document(SAMPLE_TEXT)
    print(f"Type: {result.document_type.name} ({result.document_type.name_ar}), confidence {result.confidence:.3f}")
    for alternative in result.alternative_types:
        print(f"   • {alternative.type.id}: {alternative.confidence:.3f}")


async def demo_quality_comparison(assessor: QualityAssessor, enhancer: ArabicTextEnhancer):
    print("\n📊 Before/After Comparison")
    print("-" * 35)

    enhanced = enhancer.enhance(SAMPLE_TEXT).enhanced_text
    comparison = assessor.compare_text_versions(SAMPLE_TEXT, enhanced)
    print(f"Similarity {comparison.similarity:.2f}, improvement {comparison.improvement_score:.2f}, "
          f"{len(comparison.differences)} differences")


async def process_images(pipeline: DocumentIntelligencePipeline, paths, options: OCROptions):
    print("\n🚀 Full Pipeline")
    print("-" * 35)

    for path in paths:
        try:
            result = await pipeline.process(path.read_bytes(), options)
        except AllEnginesFailedError as e:
            print(f"❌ {path.name}: {e}")
            continue

        quality = result.quality
        print(f"📄 {path.name}")
        print(f"   Engine: {result.ocr_result.engine} ({result.ocr_result.confidence:.2f})")
        print(f"   Type: {result.classification.document_type.id} ({result.classification.confidence:.3f})")
        print(f"   Quality: {quality.quality_grade.value} ({quality.overall_quality.overall:.2f}), "
              f"manual review: {quality.needs_manual_review}")
        for recommendation in quality.recommendations:
            print(f"   💡 {recommendation}")


async def process_batch(pipeline: DocumentIntelligencePipeline, paths, options: OCROptions):
    print("\n📦 Batch OCR")
    print("-" * 35)

    documents = [BatchDocument(id=path.stem, content=path.read_bytes(), filename=path.name) for path in paths]
    batch = await pipeline.ocr_processor.process_batch(documents, options)
    for item in batch.results:
        print(f"   • {item.document_id}: {item.status.value}")
    summary = batch.summary
    print(f"Succeeded {summary.successful_documents}/{summary.total_documents}, "
          f"average confidence {summary.average_confidence:.2f}, {summary.total_processing_time:.2f}s")


async def main(args) -> int:
    pipeline = DocumentIntelligencePipeline.from_settings(get_settings())
    options = OCROptions(confidence=args.confidence, language=args.language)

    demo_engine_status(pipeline)
    await demo_text_enhancement(pipeline.enhancer)
    await demo_classification(pipeline.classifier)
    await demo_quality_comparison(pipeline.assessor, pipeline.enhancer)

    paths = [Path(p) for p in args.images]
    missing = [p for p in paths if not p.is_file()]
    if missing:
        print(f"\n❌ Not found: {', '.join(str(p) for p in missing)}")
        return 1

    if paths:
        if args.batch:
            await process_batch(pipeline, paths, options)
        else:
            await process_images(pipeline, paths, options)

    print("\n✅ Demonstration completed")
    return 0


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Run the Arabic document intelligence pipeline on sample text and scanned images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Text stages only
  python examples/document_pipeline_demo.py

  # Full pipeline on two scans
  python examples/document_pipeline_demo.py contract.png iqama.jpg --confidence 0.6

  # Batch OCR only
  python examples/document_pipeline_demo.py scans/*.png --batch
        """,
    )
    parser.add_argument("images", nargs="*", help="Document images to process")
    parser.add_argument("--confidence", type=float, default=0.5, help="Minimum acceptable OCR confidence")
    parser.add_argument("--language", default="ara+eng", help="Tesseract language codes")
    parser.add_argument("--batch", action="store_true", help="Run batch OCR instead of the full pipeline")
    parser.add_argument("--log-level", default=None, help="Logging level (defaults to LOG_LEVEL)")
    return parser.parse_args(argv)


if __name__ == "__main__":
    arguments = parse_args()
    configure_logging(arguments.log_level)
    try:
        sys.exit(asyncio.run(main(arguments)))
    except KeyboardInterrupt:
        print("\n⚠️  Demonstration interrupted by user")
        sys.exit(130)
