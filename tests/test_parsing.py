import pytest

from javachunk.errors import ParseError, SourceReadError
from javachunk.parsing import parse_file, parse_source

from .conftest import SCENARIO, SERVICE


def test_package_and_imports():
    unit = parse_source(SERVICE)
    assert unit.package == "com.example.shop"
    assert [i.path for i in unit.imports] == ["java.util.List", "java.util.Map"]
    assert unit.imports[0].text == "import java.util.List;"


def test_static_and_wildcard_imports_keep_source_order():
    src = "import static java.util.Collections.*;\nimport java.io.File;\nimport java.io.File;\nclass A {}\n"
    unit = parse_source(src)
    assert [i.text for i in unit.imports] == [
        "import static java.util.Collections.*;",
        "import java.io.File;",
        "import java.io.File;",
    ]
    assert unit.imports[0].is_static and unit.imports[0].is_wildcard
    assert not unit.imports[1].is_static


def test_default_package_is_empty_string():
    assert parse_source("class A {}").package == ""


def test_types_are_in_preorder_with_parent_indices():
    unit = parse_source(SERVICE)
    names = [t.name for t in unit.iter_types()]
    assert names == ["OrderService", "Line", "Deep"]
    service, line, deep = unit.types
    assert service.parent is None
    assert line.parent == service.index
    assert deep.parent == line.index
    assert service.nested == (line.index,)
    assert unit.top_level == (service.index,)
    assert unit.qualified_name(deep) == "OrderService.Line.Deep"
    assert unit.parent_of(service) is None


def test_type_members():
    unit = parse_source(SERVICE)
    service = unit.types[0]
    assert service.modifiers == ("public",)
    assert service.doc == "/** Order service. */"
    assert service.fields == ("private final Map<String, Integer> stock;",)
    assert service.initializers == ('static { System.out.println("loaded"); }',)
    assert [m.name for m in service.methods] == ["place", "count"]
    assert [c.name for c in service.constructors] == ["OrderService", "OrderService"]
    assert service.methods[0].doc == "/** Places an order. */"
    assert service.methods[1].text == "public int count() { return stock.size(); }"
    # nested members stay on the nested type
    assert [c.name for c in unit.types[1].constructors] == ["Line"]


def test_declaration_parts():
    src = (
        "@Deprecated\n"
        "public abstract class Repo<T, ID extends Comparable<ID>> extends Base<T> implements A, B<T> {}\n"
        "interface Store<K> extends Closeable, Iterable<K> {}\n"
    )
    repo, store = parse_source(src).types
    assert repo.annotations == ("@Deprecated",)
    assert repo.modifiers == ("public", "abstract")
    assert repo.type_parameters == ("T", "ID extends Comparable<ID>")
    assert repo.extends == ("Base<T>",)
    assert repo.implements == ("A", "B<T>")
    assert store.is_interface
    assert store.extends == ("Closeable", "Iterable<K>")
    assert store.implements == ()


def test_enum_and_record():
    src = (
        "enum Color implements Named {\n"
        "  RED, GREEN;\n"
        "  private final int code = 1;\n"
        "  Color() { }\n"
        "  public String label() { return name(); }\n"
        "}\n"
        "record Point(int x, int y) {\n"
        "  Point { }\n"
        "  int sum() { return x + y; }\n"
        "}\n"
    )
    color, point = parse_source(src).types
    assert color.kind == "enum"
    assert color.enum_constants == ("RED", "GREEN")
    assert color.implements == ("Named",)
    assert color.fields == ("private final int code = 1;",)
    assert [c.name for c in color.constructors] == ["Color"]
    assert [m.name for m in color.methods] == ["label"]
    assert point.kind == "record"
    assert point.record_components == "(int x, int y)"
    assert [c.kind for c in point.constructors] == ["constructor"]
    assert [m.name for m in point.methods] == ["sum"]


def test_local_types_have_no_enclosing_type():
    src = "class A {\n  void m() {\n    class Local { void k() { } }\n  }\n  class B { }\n}\n"
    unit = parse_source(src)
    assert [t.name for t in unit.types] == ["A", "Local", "B"]
    local = unit.types[1]
    assert local.parent is None
    assert unit.qualified_name(local) == "Local"
    assert unit.types[2].parent == 0
    assert unit.top_level == (0,)


def test_local_types_can_be_excluded():
    src = "class A {\n  void m() {\n    class Local { }\n  }\n}\n"
    unit = parse_source(src, include_local_types=False)
    assert [t.name for t in unit.types] == ["A"]


def test_anonymous_class_methods_stay_inside_enclosing_method():
    src = "class A {\n  Runnable r() {\n    return new Runnable() { public void run() { } };\n  }\n}\n"
    unit = parse_source(src)
    assert [t.name for t in unit.types] == ["A"]
    assert [m.name for m in unit.types[0].methods] == ["r"]


def test_deep_nesting_has_no_depth_limit():
    depth = 40
    src = "".join(f"class T{i} {{\n" for i in range(depth)) + "}\n" * depth
    unit = parse_source(src)
    assert len(unit.types) == depth
    assert unit.qualified_name(unit.types[-1]) == ".".join(f"T{i}" for i in range(depth))


def test_syntax_error_raises_parse_error():
    src = "public class Broken {\n  void m() {\n    int x = ;\n  }\n}\n"
    with pytest.raises(ParseError) as info:
        parse_source(src, path="Broken.java")
    err = info.value
    assert err.stage == "parse"
    assert err.path == "Broken.java"
    assert err.line is not None and err.line >= 1


def test_parse_file(tmp_path):
    f = tmp_path / "Outer.java"
    f.write_text(SCENARIO, encoding="utf-8")
    unit = parse_file(f)
    assert unit.path == str(f)
    assert [t.name for t in unit.types] == ["Outer", "Inner"]


def test_parse_file_missing(tmp_path):
    with pytest.raises(SourceReadError):
        parse_file(tmp_path / "Nope.java")


def test_javadoc_after_annotation_and_on_fields():
    src = "@Deprecated\n/** Old API. */\npublic class A {\n  /** Max size. */\n  int max;\n  int plain;\n}\n"
    (a,) = parse_source(src).types
    assert a.doc == "/** Old API. */"
    assert a.annotations == ("@Deprecated",)
    assert a.modifiers == ("public",)
    assert a.fields == ("/** Max size. */\nint max;", "int plain;")


def test_enum_constants_drop_class_bodies():
    src = "enum Op {\n  PLUS(\"+\") { int apply(int a) { return a; } },\n  MINUS;\n  Op() { }\n  Op(String s) { }\n}\n"
    (op,) = parse_source(src).types
    assert op.enum_constants == ('PLUS("+")', "MINUS")
    assert [m.name for m in op.methods] == []


def test_syntax_error_column_counts_characters():
    template = 'class A {\n  String s = "{}"; int x = ;\n}\n'
    errors = []
    for word in ("eee", "ééé"):
        with pytest.raises(ParseError) as info:
            parse_source(template.replace("{}", word))
        errors.append(info.value)
    ascii_err, accented_err = errors
    assert accented_err.line == ascii_err.line == 2
    assert accented_err.column == ascii_err.column
