import pytest

from tinygen.vnode import (
    MAX_VIEW_DEPTH,
    Component,
    Element,
    Props,
    RenderError,
    as_component,
    component,
    css_name,
    h,
    render,
    render_attrs,
    render_style,
)


def test_render_base_cases():
    assert render(None) == ""
    assert render("") == ""
    assert render("<b>raw & trusted</b>") == "<b>raw & trusted</b>"
    assert render(["a", None, "b"]) == "ab"


def test_render_literal_elements():
    assert render(h("p", None, "hi")) == "<p>hi</p>"
    assert render(h("a", {"href": "/x", "class": "link"}, "x")) == '<a href="/x" class="link">x</a>'
    assert render(h("ul", None, [h("li", None, "1"), h("li", None, "2")])) == (
        "<ul><li>1</li><li>2</li></ul>"
    )


def test_render_self_closing_for_missing_or_empty_children():
    assert render(h("br")) == "<br />"
    assert render(Element("hr")) == "<hr />"
    assert render(Element("hr", None, [])) == "<hr />"
    assert render(h("img", {"src": "/a.png"})) == '<img src="/a.png" />'


def test_attrs_and_styles():
    assert css_name("fontSize") == "font-size"
    assert css_name("borderTopWidth") == "border-top-width"
    assert render_style({"fontSize": "12px", "color": "red"}) == "font-size: 12px; color: red;"
    assert render_attrs(None) == ""
    assert render_attrs({}) == ""
    assert render_attrs({"id": "x", "hidden": None}) == 'id="x"'
    out = render(h("div", {"style": {"marginTop": "1em"}}, "x"))
    assert out == '<div style="margin-top: 1em;">x</div>'


def test_view_returning_string_list_and_element():
    as_string = Component(lambda props: "text")
    as_list = Component(lambda props: ["a", h("b", None, "c")])
    as_element = Component(lambda props: h("em", props.attrs, props.children))
    assert render(h(as_string)) == "text"
    assert render(h(as_list)) == "a<b>c</b>"
    assert render(h(as_element, {"id": "e"}, "x")) == '<em id="e">x</em>'


def test_view_receives_attrs_and_children():
    seen = {}

    def capture(props):
        seen["props"] = props
        return ""

    render(h(capture, {"title": "Hi"}, "child"))
    assert seen["props"] == Props({"title": "Hi"}, ["child"])


def test_view_chain_resolves_through_nested_views():
    inner = Component(lambda props: h("section", None, props.children))
    middle = Component(lambda props: h(inner, None, props.children))
    outer = Component(lambda props: h(middle, None, props.children))
    assert render(h(outer, None, "deep")) == "<section>deep</section>"


def test_infinite_delegation_raises():
    def loop(props):
        return h(looping, props.attrs)

    looping = Component(loop)
    with pytest.raises(RenderError, match=str(MAX_VIEW_DEPTH)):
        render(h(looping))


def test_delegation_through_lists_and_children_raises():
    def in_list(props):
        return [h(listed)]

    def in_child(props):
        return h("div", None, h(nested))

    listed = Component(in_list)
    nested = Component(in_child)
    with pytest.raises(RenderError):
        render(h(listed))
    with pytest.raises(RenderError):
        render(h(nested))


def test_deep_literal_nesting_is_not_limited():
    tree = "x"
    for _ in range(MAX_VIEW_DEPTH + 10):
        tree = h("span", None, tree)
    assert render(tree).count("<span>") == MAX_VIEW_DEPTH + 10


def test_unsupported_values_raise():
    with pytest.raises(RenderError):
        render(42)
    with pytest.raises(RenderError):
        render(h(lambda props: 42))


def test_as_component_accepts_view_objects_and_callables():
    class Card:
        def view(self, props):
            return "card"

    assert render(h(Card())) == "card"
    assert render(h(lambda props: "fn")) == "fn"
    comp = Component(lambda props: "c")
    assert as_component(comp) is comp
    with pytest.raises(TypeError):
        as_component("not a view")


def test_h_uses_single_list_as_children():
    assert h("ul", None, ["a", "b"]).children == ["a", "b"]
    assert h("ul", None, "a", "b").children == ["a", "b"]
    assert h("ul").children == []


def test_component_decorator_merges_defaults_and_content():
    @component(greeting="Hello")
    def hello(attrs):
        return h("p", None, f"{attrs['greeting']} {attrs['name']}", attrs["content"])

    assert render(h(hello, {"name": "Ada"}, "!")) == "<p>Hello Ada!</p>"
    assert render(h(hello, {"name": "Ada", "greeting": "Hi"})) == "<p>Hi Ada</p>"


def test_component_decorator_applies_layout():
    @component
    def shell(attrs):
        return h("body", None, attrs["content"])

    @component
    def page(attrs):
        assert "layout" not in attrs
        return h("h1", None, attrs["title"])

    out = render(h(page, {"title": "T", "layout": shell}))
    assert out == "<body><h1>T</h1></body>"


def test_render_is_idempotent():
    tree = h(component(lambda attrs: h("p", None, attrs["x"])), {"x": "1"})
    assert render(tree) == render(tree)
