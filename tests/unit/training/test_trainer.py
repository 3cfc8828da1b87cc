"""
Unit tests for dataset parsing and reranker training.
"""

import json

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from articlescope.config import TrainerConfig
from articlescope.dom import parse_html
from articlescope.extractor.dataset import dataset_header, format_row
from articlescope.extractor.features import FeatureExtractor, to_vector
from articlescope.extractor.reranker import Reranker
from articlescope.protocols import FeatureSet, RerankerModel, TrainingRow
from articlescope.training import RerankerTrainer, canonical_column, log_loss, parse_dataset, training_vector
from tests.helpers import make_prose, page

HEADER = "xpath,len,punct,ld,pc,sem,boiler,label"

FEATURE_SETS = st.builds(
    FeatureSet,
    length=st.integers(min_value=0, max_value=1_000_000),
    punctuation=st.integers(min_value=0, max_value=10_000),
    link_density=st.floats(min_value=0.0, max_value=1.0, allow_nan=False, allow_infinity=False),
    paragraphs=st.integers(min_value=0, max_value=500),
    semantic=st.booleans(),
    boilerplate=st.integers(min_value=0, max_value=3),
)


def _csv_line(features: FeatureSet, label: int) -> str:
    return (
        f"/HTML/BODY[1],{features.length},{features.punctuation},{features.link_density!r},"
        f"{features.paragraphs},{int(features.semantic)},{features.boilerplate},{label}"
    )


@pytest.mark.unit
class TestParseDataset:
    """Column aliasing and row validation."""

    def test_canonical_header(self):
        rows = parse_dataset(f"url,{HEADER}\nhttps://a.example/x,/HTML/BODY[1],500,12,0.1,4,1,0,1\n")

        assert rows == [
            TrainingRow(
                features=FeatureSet(
                    length=500, punctuation=12, link_density=0.1, paragraphs=4, semantic=True, boilerplate=0
                ),
                label=1,
                extras={},
            )
        ]

    @pytest.mark.parametrize(
        "header",
        [
            "length,punctuation,link_density,paragraph_count,semantic,boilerplate,target",
            "text_length,punct,linkDensity,paragraphs,sem,boiler,y",
            "LEN, Punct, LD, PC, SEM, BOILER, Label",
        ],
    )
    def test_header_aliases(self, header):
        rows = parse_dataset(f"{header}\n800,20,0.05,6,0,1,0\n")

        assert len(rows) == 1
        assert rows[0].features.length == 800
        assert rows[0].features.link_density == 0.05
        assert rows[0].features.boilerplate == 1
        assert rows[0].label == 0

    def test_column_order_follows_header(self):
        rows = parse_dataset("label,boiler,sem,pc,ld,punct,len\n1,2,1,3,0.25,7,300\n")

        assert rows[0].features == FeatureSet(
            length=300, punctuation=7, link_density=0.25, paragraphs=3, semantic=True, boilerplate=2
        )
        assert rows[0].label == 1

    def test_extended_columns_become_extras(self):
        text = "len,punct,ld,pc,sem,boiler,label,depth,imgAltRatio,paragraph_block_ratio,unknown\n"
        text += "400,5,0.2,3,1,0,1,7,0.5,0.75,zzz\n"

        row = parse_dataset(text)[0]

        assert row.extras == {"depth": 7.0, "imgAltRatio": 0.5, "dr": 0.75}
        assert training_vector(row) == to_vector(row.features)

    def test_invalid_rows_are_dropped(self):
        text = "\n".join(
            [
                HEADER,
                "/a,100,1,0.1,1,0,0,1",
                "/b,,1,0.1,1,0,0,1",
                "/c,100,1,nan,1,0,0,1",
                "/d,100,1,inf,1,0,0,1",
                "/e,100,1,0.1,1,0,0,2",
                "/f,100,1,0.1,1,0,0,",
                "/g,abc,1,0.1,1,0,0,0",
                "/h,100,1,0.1,1,2,0,0",
                "/i,100.5,1,0.1,1,0,0,0",
                "/j,100,1,0.1",
                "",
                "/k,200.0,2,0.3,2,1,1,0",
            ]
        )

        rows = parse_dataset(text)

        assert [r.features.length for r in rows] == [100, 200]
        assert [r.label for r in rows] == [1, 0]

    def test_headerless_legacy_rows(self):
        text = "https://a.example/x,/HTML/BODY[1],500,12,0.1,4,1,0,1\n/HTML/BODY[1]/DIV[2],90,1,0.6,1,0,2,0\n300,3,0.0,2,0,0,1\n"

        rows = parse_dataset(text)

        assert [r.features.length for r in rows] == [500, 90, 300]
        assert [r.label for r in rows] == [1, 0, 1]

    def test_empty_input(self):
        assert parse_dataset("") == []
        assert parse_dataset(HEADER + "\n") == []

    def test_canonical_column(self):
        assert canonical_column("Link-Density") == "ld"
        assert canonical_column("image_alt_ratio") == "imgAltRatio"
        assert canonical_column("headline") is None


@pytest.mark.unit
class TestVectorParity:
    """Training rows and live candidates produce the same vectors."""

    @settings(max_examples=100, deadline=None)
    @given(FEATURE_SETS)
    def test_parsed_row_matches_inference_vector(self, features):
        rows = parse_dataset(f"{HEADER}\n{_csv_line(features, 1)}\n")

        assert len(rows) == 1
        assert rows[0].features == features
        assert training_vector(rows[0]) == to_vector(features)

    def test_dumped_candidate_round_trips(self):
        """A row written by the dataset dump trains on the vector it was scored with."""
        html = page(f'<article><p>{make_prose(700)} <a href="/x">related link text</a></p><br><p>More.</p></article>')
        candidate = FeatureExtractor().build(parse_html(html).article, order=0)
        text = ",".join(dataset_header(False)) + "\n" + format_row(candidate)

        row = parse_dataset(text)[0]

        assert training_vector(row) == candidate.vector


@pytest.mark.unit
class TestRerankerTrainer:
    """Gradient-descent training."""

    POSITIVE = FeatureSet(length=2000, punctuation=40, link_density=0.02, paragraphs=12, semantic=True, boilerplate=0)
    NEGATIVE = FeatureSet(length=80, punctuation=1, link_density=0.8, paragraphs=1, semantic=False, boilerplate=3)

    def _rows(self):
        return [TrainingRow(self.POSITIVE, 1), TrainingRow(self.NEGATIVE, 0)] * 4

    def test_zero_rows_give_zero_model(self):
        model = RerankerTrainer().train([])

        assert model == RerankerModel(weights=(0.0,) * 6, bias=0.0)

    def test_zero_epochs_leave_weights_untouched(self):
        model = RerankerTrainer(TrainerConfig(epochs=0)).train(self._rows())

        assert model.weights == (0.0,) * 6
        assert model.bias == 0.0

    def test_training_separates_classes(self):
        rows = self._rows()

        model = RerankerTrainer(TrainerConfig(learning_rate=0.05, epochs=2000)).train(rows)
        reranker = Reranker(model)

        assert len(model.weights) == 6
        assert reranker.score(to_vector(self.POSITIVE)) > 0.5 > reranker.score(to_vector(self.NEGATIVE))
        assert log_loss(model, rows) < log_loss(RerankerModel.zero(), rows)

    def test_l2_penalty_is_part_of_the_loss(self):
        model = RerankerModel(weights=(1.0, 0, 0, 0, 0, 0), bias=0.0)
        rows = self._rows()

        assert log_loss(model, rows, l2=1.0) == pytest.approx(log_loss(model, rows) + 0.5)

    def test_train_file_and_save_model(self, tmp_path):
        dataset = tmp_path / "dataset.csv"
        dataset.write_text(
            HEADER + "\n" + "\n".join(_csv_line(r.features, r.label) for r in self._rows()) + "\n"
        )
        out = tmp_path / "models" / "reranker.json"
        trainer = RerankerTrainer(TrainerConfig(epochs=50))

        model = trainer.train_file(dataset)
        trainer.save_model(model, out)

        saved = json.loads(out.read_text())
        assert set(saved) == {"weights", "bias"}
        assert RerankerModel.from_file(out) == model
