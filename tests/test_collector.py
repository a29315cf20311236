import pytest

from iconextract.collector import RT_GROUP_ICON, RT_ICON, collect
from iconextract.errors import DuplicateImageIdentifier, ResourceAccessError

from conftest import FakeSource, group_dir


def test_groups_keep_enumeration_order():
    g1, g2, g3 = group_dir([(1, 1)]), group_dir([(2, 1)]), group_dir([(3, 1)])
    src = FakeSource(groups=[("MAINICON", g2), (1, g1), (7, g3)],
                     icons=[(1, b"a"), (2, b"b"), (3, b"c")])

    groups, images = collect(src)

    assert groups == (g2, g1, g3)
    assert dict(images) == {1: b"a", 2: b"b", 3: b"c"}
    assert src.calls == [RT_GROUP_ICON, RT_ICON]


def test_image_table_is_read_only():
    _, images = collect(FakeSource(icons=[(1, b"a")]))
    with pytest.raises(TypeError):
        images[2] = b"b"


def test_no_icon_groups():
    groups, images = collect(FakeSource())
    assert groups == ()
    assert len(images) == 0


def test_duplicate_image_id():
    src = FakeSource(icons=[(4, b"a"), (5, b"b"), (4, b"c")])
    with pytest.raises(DuplicateImageIdentifier) as exc:
        collect(src)
    assert exc.value.image_id == 4


def test_named_image_is_rejected():
    with pytest.raises(ResourceAccessError):
        collect(FakeSource(icons=[("ICON1", b"a")]))


def test_source_failure_propagates_with_code():
    src = FakeSource(groups=[(1, group_dir([(1, 1)]))], icons=[(1, b"a")], fail_on=1)
    with pytest.raises(ResourceAccessError) as exc:
        collect(src)
    assert exc.value.code == 1814
