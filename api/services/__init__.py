"""Service layer between the HTTP/CLI surfaces and the rendering package.

Services own delivery concerns (media types, download filenames, response
shapes) so routes stay thin and focused on HTTP handling:

    Routes / CLI -> Services -> Rendering
"""
