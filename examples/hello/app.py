"""Hello: routes, parameters, wildcards, and versioned groups.

Run:
    python app.py
"""

from wren import Engine, H

engine = Engine.default()


@engine.get("/")
def index(ctx):
    ctx.string(200, "Hello, World!")


@engine.get("/hello/:name")
def hello(ctx):
    ctx.string(200, "hello %s, you're at %s", ctx.param("name"), ctx.path)


@engine.get("/assets/*filepath")
def assets(ctx):
    ctx.json(200, H(filepath=ctx.param("filepath")))


v1 = engine.group("/v1")


@v1.get("/hello")
def v1_hello(ctx):
    ctx.string(200, "hello %s", ctx.query("name") or "guest")


v2 = engine.group("/v2")


@v2.post("/login")
async def login(ctx):
    ctx.json(200, H(username=await ctx.post_form("username")))


@v2.get("/panic")
def panic(ctx):
    names = ["wren"]
    ctx.string(200, names[100])


if __name__ == "__main__":
    engine.run()
