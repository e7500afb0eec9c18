"""Hello World -- the simplest dltemplate example.

Compile a view from a string and render it with context variables.
No views directory and no build cache needed.

Run:
    python app.py
"""

from dltemplate import DictLoader, Environment

env = Environment(loader=DictLoader({}), cache=False)

# Compile from string
template = env.from_string("Hello, {{ $name }}!")

# Render with context
output = template.render(name="World")

# Markup in values is escaped
escaped_output = template.render(name="<b>World</b>")


def main() -> None:
    print(output)
    print(escaped_output)
    print()

    # Multiple renders with different context
    for name in ["Directives", "Views", "Python"]:
        print(template.render(name=name))


if __name__ == "__main__":
    main()
