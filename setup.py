from setuptools import setup

setup(
    name="org-tree",
    version="0.0.1",
    description="Library to parse org-files into a position-tracked syntax tree.",
    author="kenkeiras",
    author_email="kenkeiras@codigoparallevar.com",
    license="Apache License 2.0",
    packages=["org_tree"],
    scripts=[],
    include_package_data=False,
    install_requires=[],
    zip_safe=True,
)
