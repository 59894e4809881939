"""Tests for batch processing."""

import dataclasses
import json

import pytest

from cert_extractor.services.batch import ExtractionOrchestrator, _process_single_document
from cert_extractor.services.export import JsonExporter


@pytest.fixture
def orchestrator():
    """Orchestrator without export."""
    return ExtractionOrchestrator()


@pytest.fixture
def mixed_batch(gauge_certificate, relief_valve_certificate, make_pdf):
    """Two good documents, one unsupported file and one blank text file."""
    return [
        ("a.txt", gauge_certificate.encode("utf-8")),
        ("b.docx", b"not a certificate"),
        ("c.txt", b"   "),
        ("d.pdf", make_pdf(relief_valve_certificate.splitlines())),
    ]


class TestSingleDocument:
    """Test per-document processing."""

    def test_success(self, gauge_certificate):
        """Test a good document yields a certificate and no error."""
        outcome = _process_single_document(("a.txt", gauge_certificate.encode("utf-8")))

        assert outcome["processed"] is True
        assert outcome["error"] is None
        assert outcome["certificate"].certificate_no == "PHO-CC-56386"

    def test_invalid_file_not_processed(self):
        """Test a rejected file is reported and not counted as processed."""
        outcome = _process_single_document(("notes.docx", b"data"))

        assert outcome["processed"] is False
        assert outcome["certificate"] is None
        assert outcome["error"] == "Invalid file: notes.docx (must be PDF or TXT)"

    def test_corrupt_pdf_not_processed(self):
        """Test an unreadable PDF is reported as an invalid file."""
        outcome = _process_single_document(("broken.pdf", b"garbage bytes"))

        assert outcome["processed"] is False
        assert outcome["error"].startswith("Invalid file: broken.pdf")


class TestProcessBatch:
    """Test ExtractionOrchestrator.process_batch."""

    def test_mixed_batch(self, orchestrator, mixed_batch):
        """Test good documents survive bad ones in the same batch."""
        result = orchestrator.process_batch(mixed_batch)

        assert [c.certificate_no for c in result.certificates] == ["PHO-CC-56386", "PHO-CC-56387"]
        assert result.errors == (
            "Invalid file: b.docx (must be PDF or TXT)",
            "Error processing c.txt: No text could be extracted from c.txt",
        )
        assert result.processed_files == 3
        assert result.has_results is True
        assert result.saved_file is None

    def test_relief_valve_from_pdf(self, orchestrator, mixed_batch):
        """Test the PDF document is extracted from its text layer."""
        result = orchestrator.process_batch(mixed_batch[3:])
        record = result.certificates[0]

        assert record.equipment_type == "PRESSURE RELIEF VALVE"
        assert record.serial_no == "103-PRV-05"
        assert record.range == "150"

    def test_empty_batch(self, orchestrator):
        """Test an empty batch has no results."""
        result = orchestrator.process_batch([])

        assert result.certificates == ()
        assert result.errors == ()
        assert result.processed_files == 0
        assert result.has_results is False

    def test_parallel_keeps_input_order(self, orchestrator, gauge_certificate, relief_valve_certificate):
        """Test worker processes return results in input order."""
        documents = [
            ("relief.txt", relief_valve_certificate.encode("utf-8")),
            ("gauge.txt", gauge_certificate.encode("utf-8")),
        ]
        result = orchestrator.process_batch(documents, max_workers=2)

        assert [c.certificate_no for c in result.certificates] == ["PHO-CC-56387", "PHO-CC-56386"]
        assert result.processed_files == 2


class TestProcessTexts:
    """Test ExtractionOrchestrator.process_texts."""

    def test_texts(self, orchestrator, gauge_certificate):
        """Test page texts are extracted and blank ones reported."""
        result = orchestrator.process_texts([("one", gauge_certificate), ("two", "")])

        assert len(result.certificates) == 1
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Error processing two: No text could be extracted")
        assert result.processed_files == 2

    def test_malformed_item_isolated(self, orchestrator, gauge_certificate):
        """Test a malformed item is reported and the items around it still extract."""
        result = orchestrator.process_texts([
            ("one", gauge_certificate),
            ("bad", b"\xff\xfe not text"),
            ("three", gauge_certificate),
        ])

        assert [c.certificate_no for c in result.certificates] == ["PHO-CC-56386", "PHO-CC-56386"]
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Error processing bad:")
        assert result.processed_files == 3

    def test_result_is_immutable(self, orchestrator, gauge_certificate):
        """Test the returned result cannot be changed."""
        result = orchestrator.process_texts([("one", gauge_certificate)])

        with pytest.raises(dataclasses.FrozenInstanceError):
            result.processed_files = 5
        assert not hasattr(result.certificates, "append")


class TestBatchExport:
    """Test saving batch results."""

    def test_results_saved(self, tmp_path, gauge_certificate):
        """Test certificates are exported when an exporter is configured."""
        orchestrator = ExtractionOrchestrator(exporter=JsonExporter(str(tmp_path)))
        result = orchestrator.process_batch([("a.txt", gauge_certificate.encode("utf-8"))])

        assert result.saved_file is not None
        with open(result.saved_file, encoding="utf-8") as f:
            assert json.load(f)[0]["serialNo"] == "E2119930387"

    def test_nothing_saved_without_results(self, tmp_path):
        """Test no file is written for a batch without certificates."""
        orchestrator = ExtractionOrchestrator(exporter=JsonExporter(str(tmp_path / "out")))
        result = orchestrator.process_batch([("b.docx", b"data")])

        assert result.saved_file is None
        assert not (tmp_path / "out").exists()

    def test_save_failure_reported(self, tmp_path, gauge_certificate):
        """Test a failed save becomes an error but keeps the certificates."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        orchestrator = ExtractionOrchestrator(exporter=JsonExporter(str(blocker)))

        result = orchestrator.process_batch([("a.txt", gauge_certificate.encode("utf-8"))])

        assert len(result.certificates) == 1
        assert result.saved_file is None
        assert result.errors[0].startswith("Error saving JSON file:")
