from __future__ import annotations

import itertools

from curation.dedup import (
    DedupContext,
    dedupe,
    dimension_bucket,
    filename_stem,
    image_signature,
    merge_unique,
    with_signature,
)


def _signatures(candidates):
    return sorted((candidate.signature, candidate.image_url) for candidate in candidates)


def test_filename_stem_strips_size_and_variant_suffixes() -> None:
    assert filename_stem("https://a.example.com/img/photo-large.jpg") == "photo"
    assert filename_stem("https://b.example.com/x/photo-1200x900.jpg") == "photo"
    assert filename_stem("https://c.example.com/Image@2x.PNG") == "image"
    assert filename_stem("https://d.example.com/photo_scaled-1024x768.webp") == "photo"
    assert filename_stem("https://e.example.com/sunset-beach.jpg") == "sunset-beach"


def test_dimension_bucket_tracks_shape_not_size() -> None:
    assert dimension_bucket(2000, 1500) == dimension_bucket(1200, 900) == "16x12"
    assert dimension_bucket(2000, 1000) != dimension_bucket(2000, 1500)
    assert dimension_bucket(None, 900) == "0x0"


def test_signature_is_deterministic_and_assigned_once(make_candidate) -> None:
    candidate = make_candidate("https://a.example.com/img/photo-large.jpg")
    signed = with_signature(candidate)

    assert signed.signature == image_signature(candidate.image_url, 2000, 1500) == "photo|16x12"
    assert with_signature(signed.model_copy(update={"width": 10})).signature == "photo|16x12"


def test_resized_copies_collapse_to_largest(make_candidate) -> None:
    large = make_candidate("https://a.example.com/img/photo-large.jpg", width=2000, height=1500)
    small = make_candidate(
        "https://b.example.org/x/photo-1200x900.jpg",
        width=1200,
        height=900,
        source_domain="example.org",
        provider_tag="bing",
    )

    for ordering in ([large, small], [small, large]):
        survivors = dedupe(ordering)
        assert len(survivors) == 1
        assert survivors[0].image_url == large.image_url
        assert (survivors[0].width, survivors[0].height) == (2000, 1500)


def test_same_url_prefers_higher_priority_provider(make_candidate) -> None:
    from_bing = make_candidate("https://img.example.com/a.jpg", provider_tag="bing")
    from_google = make_candidate("https://IMG.example.com/a.jpg", provider_tag="google_cse")

    survivors = dedupe([from_bing, from_google])

    assert len(survivors) == 1
    assert survivors[0].provider_tag == "google_cse"


def test_larger_byte_size_breaks_pixel_tie(make_candidate) -> None:
    light = make_candidate("https://a.example.com/hero.jpg", byte_size=200_000)
    heavy = make_candidate("https://b.example.com/hero.jpg", byte_size=900_000)

    assert dedupe([light, heavy])[0].byte_size == 900_000


def test_dedupe_is_idempotent(make_candidate) -> None:
    batch = [
        make_candidate("https://a.example.com/img/photo-large.jpg"),
        make_candidate("https://b.example.org/x/photo-1200x900.jpg", width=1200, height=900),
        make_candidate("https://c.example.com/sunset.jpg", width=4000, height=3000),
        make_candidate("https://c.example.com/sunset.jpg?utm_source=x", width=4000, height=3000),
        make_candidate("https://d.example.com/beach.jpg", width=None, height=None),
    ]

    once = dedupe(batch)

    assert dedupe(once) == once
    assert len(once) == 3


def test_dedupe_is_order_independent(make_candidate) -> None:
    batch = [
        make_candidate("https://a.example.com/img/photo-large.jpg", provider_tag="bing"),
        make_candidate("https://b.example.org/x/photo-2000x1500.jpg", provider_tag="brave"),
        make_candidate("https://c.example.com/photo.jpg", width=1200, height=900),
        make_candidate("https://d.example.com/other.jpg"),
    ]

    expected = _signatures(dedupe(batch))
    for permutation in itertools.permutations(batch):
        assert _signatures(dedupe(list(permutation))) == expected


def test_context_drops_seen_without_mutation(make_candidate) -> None:
    context = DedupContext()
    shown = make_candidate("https://a.example.com/one.jpg")
    context.remember([with_signature(shown)])
    before = context.snapshot()

    survivors = dedupe([shown, make_candidate("https://a.example.com/two.jpg")], context=context)

    assert [candidate.image_url for candidate in survivors] == ["https://a.example.com/two.jpg"]
    assert context.snapshot() == before
    assert len(context) == 1

    context.reset()
    assert len(context) == 0
    assert len(dedupe([shown], context=context)) == 1


def test_merge_unique_keeps_one_per_signature(make_candidate) -> None:
    existing = [make_candidate("https://a.example.com/one.jpg")]
    incoming = [make_candidate("https://b.example.com/one.jpg"), make_candidate("https://b.example.com/two.jpg")]

    merged = merge_unique(existing, incoming)

    assert sorted(candidate.signature for candidate in merged) == ["one|16x12", "two|16x12"]


def test_generic_filename_collides_across_domains_when_aspect_matches(make_candidate) -> None:
    large = make_candidate("https://a.example.com/image.jpg")
    small = make_candidate("https://b.example.org/uploads/image.jpg", width=1000, height=750)
    square = make_candidate("https://c.example.net/image.jpg", width=1500, height=1500)

    unique = dedupe([small, square, large])

    assert sorted(candidate.image_url for candidate in unique) == [
        "https://a.example.com/image.jpg",
        "https://c.example.net/image.jpg",
    ]
